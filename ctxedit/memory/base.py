"""Types and configuration for the conversation memory manager."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..types import Message


DEFAULT_FILE_TOOLS: Tuple[str, ...] = ("read_file", "edit_file", "create_file", "search_in_file")

# Argument keys that may carry a file path, in lookup order
FILE_PATH_ARGUMENT_KEYS: Tuple[str, ...] = ("filePath", "file_path", "path", "file")


@dataclass
class MemoryConfig:
    """Tunable limits for the memory manager.

    Every primitive accepts a ``config`` argument; nothing here is read from
    the environment unless the caller uses ``load_memory_config``.
    """

    max_message_pairs: int = 15
    """Number of most recent user-initiated pairs kept in the window."""

    max_tool_result_length: int = 800
    """Tool results up to this many characters are never compressed."""

    default_max_context_tokens: int = 50000
    """Budget assumed when the model's context length is unknown."""

    aggressive_threshold: int = 45000
    """Estimate above which the pass-through logs a compression warning."""

    file_tools: Tuple[str, ...] = DEFAULT_FILE_TOOLS
    """Tools whose results are always treated as file content."""

    def __post_init__(self):
        for name in (
            "max_message_pairs",
            "max_tool_result_length",
            "default_max_context_tokens",
            "aggressive_threshold",
        ):
            value = getattr(self, name)
            if not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        self.file_tools = tuple(self.file_tools)


@dataclass(frozen=True)
class ToolUsageRecord:
    """One tool invocation found in an assistant message."""

    name: str
    args: Dict[str, Any]
    timestamp: float
    file_path: Optional[str] = None


@dataclass
class CompressionResult:
    """Outcome of compressing a single tool result.

    ``skeleton`` and ``file_path`` are set only when the result was replaced
    by a file skeleton.
    """

    compressed: str
    skeleton: Optional[str] = None
    file_path: Optional[str] = None

    @property
    def is_skeleton(self) -> bool:
        return self.skeleton is not None


@dataclass
class MemoryState:
    """Bounded view of a conversation, rebuilt on every call.

    Attributes:
        system_prompt: Leading system message, if the conversation has one.
        recent_messages: Messages of the retained pairs, tool results compressed.
        tool_history: Every tool call in the whole conversation, in order.
        file_summaries: Latest compact skeleton per file path.
    """

    system_prompt: Optional[Message] = None
    recent_messages: List[Message] = field(default_factory=list)
    tool_history: List[ToolUsageRecord] = field(default_factory=list)
    file_summaries: Dict[str, str] = field(default_factory=dict)
