"""Conversation memory primitives.

Building blocks the agent loop composes to keep a long tool-using
conversation within budget:

- ``is_file_content`` / ``extract_file_path``: classify a tool result.
- ``compress_tool_result``: replace a large file read by its skeleton, or
  truncate any other large result.
- ``process_messages_for_memory``: sliding window over user-initiated pairs
  plus a whole-conversation tool log and per-file skeletons.
- ``estimate_tokens``: cheap character based estimate.
- ``prepare_messages_with_memory``: pass-through seam. The agent loop owns
  the decision to drop history, since it must keep surviving messages
  byte-identical for provider-side prompt caching.

None of these mutate their inputs. Messages are frozen dataclasses and any
rewritten message is a new object.
"""

import dataclasses
import logging
import re
import time
from typing import Any, Dict, List, Optional, Tuple

from ..skeleton import extract_skeleton, format_skeleton_compact
from ..types import Message, Role
from .base import (
    FILE_PATH_ARGUMENT_KEYS,
    CompressionResult,
    MemoryConfig,
    MemoryState,
    ToolUsageRecord,
)
from .utils import estimate_tokens, flatten_pairs, split_into_pairs

logger = logging.getLogger(__name__)


DEFAULT_CONFIG = MemoryConfig()

# Share of a known context window past which history would need compressing
AGGRESSIVE_CONTEXT_FRACTION = 0.6

# Fingerprints of source code at the start of any line
SOURCE_FINGERPRINTS = (
    re.compile(r"^import\s+", re.MULTILINE),
    re.compile(r"^from\s+[\w.]+\s+import", re.MULTILINE),
    re.compile(r"^(?:const|let|var|function|class|interface|type)\s+", re.MULTILINE),
    re.compile(r"^def\s+\w+\s*\(", re.MULTILINE),
    re.compile(r"^export\s+(?:default\s+)?(?:const|let|var|function|class)", re.MULTILINE),
)


def is_file_content(tool_name: str, content: str, config: Optional[MemoryConfig] = None) -> bool:
    """Guess whether a tool result is the content of a source file.

    True for any tool in ``config.file_tools``; otherwise true when the
    content looks like source code. False negatives only mean the result is
    truncated instead of summarized.
    """
    config = config or DEFAULT_CONFIG
    if tool_name in config.file_tools:
        return True
    return any(pattern.search(content) for pattern in SOURCE_FINGERPRINTS)


def extract_file_path(tool_name: str, args: Dict[str, Any]) -> Optional[str]:
    """Return the first non-empty string among the known path argument keys."""
    for key in FILE_PATH_ARGUMENT_KEYS:
        value = args.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def compress_tool_result(
    tool_name: str,
    args: Dict[str, Any],
    result: str,
    config: Optional[MemoryConfig] = None,
    max_length: Optional[int] = None,
) -> CompressionResult:
    """Compress one tool result.

    Results no longer than the threshold are returned as is. A longer result
    that has a resolvable file path and looks like file content is replaced
    by ``"[File read: <path>]\\n<compact skeleton>"``. Anything else is cut
    to the threshold and suffixed with ``"...[truncated: N characters]"``.

    Args:
        tool_name: Name of the tool that produced the result.
        args: Parsed arguments of the tool call.
        result: The raw tool result text.
        config: Limits to apply (defaults to ``MemoryConfig()``).
        max_length: Overrides ``config.max_tool_result_length``.

    Returns:
        CompressionResult; ``skeleton`` and ``file_path`` are set only for
        the skeleton branch.
    """
    config = config or DEFAULT_CONFIG
    limit = max_length if max_length is not None else config.max_tool_result_length

    if len(result) <= limit:
        return CompressionResult(compressed=result)

    file_path = extract_file_path(tool_name, args)
    if file_path and is_file_content(tool_name, result, config):
        try:
            skeleton = format_skeleton_compact(extract_skeleton(result, file_path))
        except Exception:
            # Any extraction failure degrades to truncation below
            logger.warning("Skeleton extraction failed for %s", file_path, exc_info=True)
        else:
            logger.debug(
                "Compressed %s result: %d -> %d chars", tool_name, len(result), len(skeleton)
            )
            return CompressionResult(
                compressed=f"[File read: {file_path}]\n{skeleton}",
                skeleton=skeleton,
                file_path=file_path,
            )

    omitted = len(result) - limit
    return CompressionResult(compressed=f"{result[:limit]}...[truncated: {omitted} characters]")


def _parse_tool_calls(message: Message) -> List[Tuple[str, str, Dict[str, Any]]]:
    """Parse the tool calls of one message into (id, name, args).

    Calls whose arguments fail to parse are skipped.
    """
    parsed = []
    for call in message.tool_calls or []:
        try:
            args = call.parse_arguments()
        except ValueError:
            logger.debug("Skipping tool call %s with unparseable arguments", call.id)
            continue
        parsed.append((call.id, call.name, args))
    return parsed


def build_tool_call_index(messages: List[Message]) -> Dict[str, Tuple[str, Dict[str, Any]]]:
    """Map tool_call_id to (tool name, parsed arguments).

    Only assistant messages are scanned; the first call with a given id
    wins. A call with malformed arguments is indexed with empty arguments.
    """
    index: Dict[str, Tuple[str, Dict[str, Any]]] = {}
    for message in messages:
        if message.role != Role.ASSISTANT or not message.tool_calls:
            continue
        for call in message.tool_calls:
            if call.id in index:
                continue
            try:
                args = call.parse_arguments()
            except ValueError:
                args = {}
            index[call.id] = (call.name, args)
    return index


def collect_tool_history(messages: List[Message]) -> List[ToolUsageRecord]:
    """Build a usage record for every tool call in every assistant message."""
    history: List[ToolUsageRecord] = []
    for message in messages:
        if message.role != Role.ASSISTANT or not message.tool_calls:
            continue
        for _, name, args in _parse_tool_calls(message):
            history.append(ToolUsageRecord(
                name=name,
                args=args,
                timestamp=time.time(),
                file_path=extract_file_path(name, args),
            ))
    return history


def process_messages_for_memory(
    messages: List[Message],
    config: Optional[MemoryConfig] = None,
    max_pairs: Optional[int] = None,
) -> MemoryState:
    """Build the bounded memory view of a conversation.

    Steps:
    1. Split off a leading system message.
    2. Record every tool call of the whole conversation in ``tool_history``.
    3. Keep only the last ``max_pairs`` user-initiated pairs.
    4. Compress each tool result in the kept pairs, resolving its call
       arguments through an index over the kept assistant messages, and
       remember the newest skeleton per file.

    The input list and its messages are left untouched; compressed tool
    messages in the result are new objects.

    Args:
        messages: Full conversation, oldest first.
        config: Limits to apply (defaults to ``MemoryConfig()``).
        max_pairs: Overrides ``config.max_message_pairs``.

    Returns:
        A fresh MemoryState.
    """
    config = config or DEFAULT_CONFIG
    window = max_pairs if max_pairs is not None else config.max_message_pairs
    if window <= 0:
        raise ValueError(f"max_pairs must be positive, got {window}")

    state = MemoryState()

    rest = messages
    if messages and messages[0].role == Role.SYSTEM:
        state.system_prompt = messages[0]
        rest = messages[1:]

    state.tool_history = collect_tool_history(rest)

    pairs = split_into_pairs(rest)[-window:]
    retained = flatten_pairs(pairs)
    call_index = build_tool_call_index(retained)

    for message in retained:
        if message.role == Role.TOOL and message.content:
            tool_name, args = call_index.get(message.tool_call_id or "", (None, {}))
            tool_name = message.name or tool_name or "unknown"

            compressed = compress_tool_result(tool_name, args, message.content, config)
            message = dataclasses.replace(message, content=compressed.compressed)

            if compressed.file_path and compressed.skeleton:
                state.file_summaries[compressed.file_path] = compressed.skeleton

        state.recent_messages.append(message)

    logger.debug(
        "Memory window: %d/%d messages kept, %d tool calls, %d file summaries",
        len(state.recent_messages), len(rest), len(state.tool_history), len(state.file_summaries),
    )
    return state


def prepare_messages_with_memory(
    messages: List[Message],
    context_length: Optional[int] = None,
    config: Optional[MemoryConfig] = None,
) -> List[Message]:
    """Return ``messages`` unchanged, logging the current token estimate.

    Dropping or compressing history is left to the agent loop, which keeps
    surviving messages byte-identical so provider prompt caches stay warm.
    """
    config = config or DEFAULT_CONFIG
    current_tokens = estimate_tokens(messages)

    if context_length:
        budget = context_length
        threshold = int(context_length * AGGRESSIVE_CONTEXT_FRACTION)
    else:
        budget = config.default_max_context_tokens
        threshold = config.aggressive_threshold

    logger.info(
        "Pass-through: %d msgs, ~%d tok | model context: %s",
        len(messages), current_tokens, context_length if context_length else "UNKNOWN",
    )
    if current_tokens > threshold:
        logger.info(
            "Estimate ~%d tok is past the compression threshold (%d of %d); "
            "history is left to the agent loop",
            current_tokens, threshold, budget,
        )

    return messages
