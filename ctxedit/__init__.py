"""ctxedit - context and edit primitives for coding agents.

Three independent building blocks an agent loop can compose:

- ``ctxedit.skeleton``: reduce a source file to a compact structural outline.
- ``ctxedit.memory``: keep a long tool-using conversation within budget.
- ``ctxedit.patch``: apply a search-and-replace edit that tolerates drift.

Usage:
    from ctxedit import extract_skeleton, format_skeleton_compact, locate

    outline = format_skeleton_compact(extract_skeleton(source, "src/app.py"))
    result = locate(source, "return 1", "return 2")
"""

__version__ = "0.1.0"

from .memory import (
    CompressionResult,
    MemoryConfig,
    MemoryState,
    ToolUsageRecord,
    build_context_summary,
    compress_tool_result,
    estimate_tokens,
    extract_file_path,
    is_file_content,
    load_memory_config,
    prepare_messages_with_memory,
    process_messages_for_memory,
)
from .patch import MatchResult, MatchStrategy, locate
from .skeleton import (
    FileSkeleton,
    ItemKind,
    SkeletonItem,
    detect_language,
    extract_skeleton,
    format_skeleton_compact,
)
from .types import Message, Role, ToolCall, ToolSchema

__all__ = [
    "__version__",
    # Conversation types
    "Message",
    "Role",
    "ToolCall",
    "ToolSchema",
    # Skeleton
    "FileSkeleton",
    "ItemKind",
    "SkeletonItem",
    "detect_language",
    "extract_skeleton",
    "format_skeleton_compact",
    # Memory
    "MemoryConfig",
    "MemoryState",
    "ToolUsageRecord",
    "CompressionResult",
    "load_memory_config",
    "is_file_content",
    "extract_file_path",
    "compress_tool_result",
    "process_messages_for_memory",
    "estimate_tokens",
    "prepare_messages_with_memory",
    "build_context_summary",
    # Patch
    "MatchResult",
    "MatchStrategy",
    "locate",
]
