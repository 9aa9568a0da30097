"""Conversation memory management.

Composable, cache-safe building blocks for keeping a long tool-using
conversation within a model's context window:

- Sliding window over user-initiated pairs
- File reads replaced by compact skeletons, other long results truncated
- Whole-conversation tool usage log

Usage:
    from ctxedit.memory import process_messages_for_memory, build_context_summary

    state = process_messages_for_memory(messages)
    system_extra = build_context_summary(state)
"""

from .base import (
    DEFAULT_FILE_TOOLS,
    FILE_PATH_ARGUMENT_KEYS,
    CompressionResult,
    MemoryConfig,
    MemoryState,
    ToolUsageRecord,
)
from .config_loader import load_memory_config
from .manager import (
    build_tool_call_index,
    collect_tool_history,
    compress_tool_result,
    extract_file_path,
    is_file_content,
    prepare_messages_with_memory,
    process_messages_for_memory,
)
from .summary import aggressively_compress_message, build_context_summary
from .utils import (
    Pair,
    estimate_message_chars,
    estimate_tokens,
    flatten_pairs,
    split_into_pairs,
)

__all__ = [
    # Core types
    "MemoryConfig",
    "MemoryState",
    "ToolUsageRecord",
    "CompressionResult",
    "DEFAULT_FILE_TOOLS",
    "FILE_PATH_ARGUMENT_KEYS",
    "load_memory_config",
    # Primitives
    "is_file_content",
    "extract_file_path",
    "compress_tool_result",
    "process_messages_for_memory",
    "estimate_tokens",
    "prepare_messages_with_memory",
    "build_tool_call_index",
    "collect_tool_history",
    # Summaries
    "build_context_summary",
    "aggressively_compress_message",
    # Utilities
    "Pair",
    "split_into_pairs",
    "flatten_pairs",
    "estimate_message_chars",
]
