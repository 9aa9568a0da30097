"""Plain-text context summaries and lossy per-message compression."""

import dataclasses
from typing import Dict, List

from ..types import Message, Role
from .base import MemoryState


# How many distinct files to list per tool in the summary
MAX_FILES_PER_TOOL = 5

TOOL_RESULT_COMPRESS_CHARS = 200
TOOL_RESULT_KEEP_LINES = 3
ASSISTANT_COMPRESS_CHARS = 500
ASSISTANT_MIN_LINES = 10
ASSISTANT_KEEP_HEAD = 5
ASSISTANT_KEEP_TAIL = 3


def build_context_summary(state: MemoryState) -> str:
    """Render the file skeletons and tool usage of a MemoryState.

    Intended for appending to a system prompt. Returns an empty string when
    the state has neither file summaries nor tool history.
    """
    lines: List[str] = []

    if state.file_summaries:
        lines.append("=== FILES IN CONTEXT ===")
        lines.extend(state.file_summaries.values())
        lines.append("")

    if state.tool_history:
        lines.append("=== TOOLS USED ===")

        counts: Dict[str, int] = {}
        files: Dict[str, List[str]] = {}
        for record in state.tool_history:
            counts[record.name] = counts.get(record.name, 0) + 1
            if record.file_path:
                seen = files.setdefault(record.name, [])
                if record.file_path not in seen:
                    seen.append(record.file_path)

        for tool, count in counts.items():
            tool_files = files.get(tool)
            if tool_files:
                listed = ", ".join(tool_files[:MAX_FILES_PER_TOOL])
                more = len(tool_files) - MAX_FILES_PER_TOOL
                suffix = f" and {more} more" if more > 0 else ""
                lines.append(f"  {tool}: {count}x -> {listed}{suffix}")
            else:
                lines.append(f"  {tool}: {count}x")
        lines.append("")

    return "\n".join(lines)


def aggressively_compress_message(message: Message) -> Message:
    """Return a lossy, shorter copy of a message.

    Tool results over 200 characters keep their first 3 lines; assistant
    replies over 500 characters and 10 lines keep their first 5 and last 3
    lines. Anything else is copied unchanged.
    """
    content = message.content

    if message.role == Role.TOOL and content and len(content) > TOOL_RESULT_COMPRESS_CHARS:
        lines = content.split("\n")
        head = "\n".join(lines[:TOOL_RESULT_KEEP_LINES])
        content = f"{head}\n...[compressed: {len(lines)} lines]"

    elif message.role == Role.ASSISTANT and content and len(content) > ASSISTANT_COMPRESS_CHARS:
        lines = content.split("\n")
        if len(lines) > ASSISTANT_MIN_LINES:
            head = "\n".join(lines[:ASSISTANT_KEEP_HEAD])
            tail = "\n".join(lines[-ASSISTANT_KEEP_TAIL:])
            dropped = len(lines) - ASSISTANT_KEEP_HEAD - ASSISTANT_KEEP_TAIL
            content = f"{head}\n...[compressed: {dropped} lines]...\n{tail}"

    return dataclasses.replace(message, content=content)
