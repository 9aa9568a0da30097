"""Command line entry point for ctxedit.

Usage:
    ctxedit skeleton src/app.ts
    ctxedit skeleton src/app.ts --compact
    ctxedit patch src/app.ts --old "return 1;" --new "return 2;" --line 40
    ctxedit patch src/app.ts --old-file old.txt --new-file new.txt --dry-run
    ctxedit memory conversation.json --pairs 10 --max-length 500
"""

import argparse
import json
import logging
import os
import sys
from typing import Any, List, Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from . import __version__
from .memory import (
    MemoryConfig,
    build_context_summary,
    estimate_tokens,
    load_memory_config,
    process_messages_for_memory,
)
from .patch import locate
from .skeleton import FileSkeleton, ItemKind, SkeletonItem, extract_skeleton, format_skeleton_compact
from .types import Message

console = Console(highlight=False, emoji=False)
error_console = Console(stderr=True, highlight=False, emoji=False)


class CliError(Exception):
    """A user-facing failure; the message is printed and the exit code is 1."""


def _read_text(path: str) -> str:
    try:
        # newline="" keeps CRLF intact
        with open(path, "r", encoding="utf-8", newline="") as f:
            return f.read()
    except FileNotFoundError:
        raise CliError(f"File not found: {path}")
    except (OSError, UnicodeDecodeError) as e:
        raise CliError(f"Failed to read {path}: {e}")


def _print_plain(text: str) -> None:
    """Print text verbatim: no markup parsing, no wrapping."""
    console.print(text, markup=False, soft_wrap=True)


# ---------------------------------------------------------------------------
# skeleton
# ---------------------------------------------------------------------------

def _item_label(item: SkeletonItem) -> str:
    if item.end_line is not None and item.end_line > item.line:
        lines = f"L{item.line}-{item.end_line}"
    else:
        lines = f"L{item.line}"
    return f"{item.kind.value} {item.name} ({lines})"


def _skeleton_tree(skeleton: FileSkeleton) -> Tree:
    tree = Tree(Text(f"{skeleton.file_path} ({skeleton.language}, {skeleton.total_lines} lines)"))
    for item in skeleton.items:
        branch = tree.add(Text(_item_label(item)))
        for child in item.children:
            branch.add(Text(_item_label(child)))
    return tree


def cmd_skeleton(args: argparse.Namespace) -> int:
    skeleton = extract_skeleton(_read_text(args.path), args.path)

    if args.compact:
        _print_plain(format_skeleton_compact(skeleton))
    else:
        console.print(_skeleton_tree(skeleton))
        methods = sum(len(item.children) for item in skeleton.items_of(ItemKind.CLASS))
        console.print(f"{len(skeleton.items)} items, {methods} methods", markup=False)
    return 0


# ---------------------------------------------------------------------------
# patch
# ---------------------------------------------------------------------------

def _text_argument(inline: Optional[str], path: Optional[str], name: str) -> str:
    if inline is not None:
        return inline
    if path is not None:
        return _read_text(path)
    raise CliError(f"one of --{name} or --{name}-file is required")


def cmd_patch(args: argparse.Namespace) -> int:
    old_string = _text_argument(args.old, args.old_file, "old")
    new_string = _text_argument(args.new, args.new_file, "new")
    content = _read_text(args.path)

    result = locate(content, old_string, new_string, args.line)

    if not result.found:
        error_console.print(f"[red]Patch failed:[/red] {escape(result.error)}", markup=True)
        for key, value in result.details.items():
            if key == "actual_content":
                continue
            error_console.print(f"  {key}: {value}", markup=False)
        actual = result.details.get("actual_content")
        if actual:
            error_console.print(actual, markup=False, soft_wrap=True)
        return 1

    if args.dry_run:
        sys.stdout.write(result.patched_content)
        return 0

    try:
        with open(args.path, "w", encoding="utf-8", newline="") as f:
            f.write(result.patched_content)
    except OSError as e:
        raise CliError(f"Failed to write {args.path}: {e}")

    console.print(
        f"Patched {args.path} at line {result.match_line} "
        f"({result.strategy}, {result.match_count} match(es))",
        markup=False,
    )
    return 0


# ---------------------------------------------------------------------------
# memory
# ---------------------------------------------------------------------------

def load_conversation(path: str) -> List[Message]:
    """Load a conversation file.

    Accepts a JSON list of OpenAI-style messages, or an object with a
    ``messages`` list.
    """
    try:
        data: Any = json.loads(_read_text(path))
    except json.JSONDecodeError as e:
        raise CliError(f"Invalid JSON in {path}: {e}")

    if isinstance(data, dict):
        data = data.get("messages")
    if not isinstance(data, list):
        raise CliError(f"{path} must contain a list of messages")

    try:
        return [Message.from_dict(item) for item in data]
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise CliError(f"Invalid message in {path}: {e}")


def cmd_memory(args: argparse.Namespace) -> int:
    config = load_memory_config(args.config)
    if args.max_length is not None:
        try:
            config = MemoryConfig(
                max_message_pairs=config.max_message_pairs,
                max_tool_result_length=args.max_length,
                default_max_context_tokens=config.default_max_context_tokens,
                aggressive_threshold=config.aggressive_threshold,
                file_tools=config.file_tools,
            )
        except ValueError as e:
            raise CliError(str(e))

    messages = load_conversation(args.conversation)
    try:
        state = process_messages_for_memory(messages, config, max_pairs=args.pairs)
    except ValueError as e:
        raise CliError(str(e))

    kept = list(state.recent_messages)
    if state.system_prompt is not None:
        kept.insert(0, state.system_prompt)

    table = Table(title="Memory")
    table.add_column("Metric")
    table.add_column("Before", justify="right")
    table.add_column("After", justify="right")
    table.add_row("Messages", str(len(messages)), str(len(kept)))
    table.add_row("Estimated tokens", str(estimate_tokens(messages)), str(estimate_tokens(kept)))
    table.add_row("Tool calls", str(len(state.tool_history)), str(len(state.tool_history)))
    table.add_row("File summaries", "", str(len(state.file_summaries)))
    console.print(table)

    summary = build_context_summary(state)
    if summary:
        _print_plain(summary)
    return 0


# ---------------------------------------------------------------------------
# main
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ctxedit",
        description="Source skeletons, conversation memory and fuzzy patching for coding agents"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to environment file (default: .env)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    skeleton = subparsers.add_parser("skeleton", help="Print the structural outline of a file")
    skeleton.add_argument("path", help="Source file to outline")
    skeleton.add_argument(
        "--compact",
        action="store_true",
        help="Print the one-line form used in model prompts"
    )
    skeleton.set_defaults(func=cmd_skeleton)

    patch = subparsers.add_parser("patch", help="Replace one occurrence of a text in a file")
    patch.add_argument("path", help="File to patch")
    old = patch.add_mutually_exclusive_group()
    old.add_argument("--old", help="Text to replace")
    old.add_argument("--old-file", help="Read the text to replace from a file")
    new = patch.add_mutually_exclusive_group()
    new.add_argument("--new", help="Replacement text")
    new.add_argument("--new-file", help="Read the replacement text from a file")
    patch.add_argument(
        "--line",
        type=int,
        default=None,
        help="Approximate 1-based line of the text, to choose between several matches"
    )
    patch.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the patched content instead of writing it"
    )
    patch.set_defaults(func=cmd_patch)

    memory = subparsers.add_parser("memory", help="Show what the memory manager keeps of a conversation")
    memory.add_argument("conversation", help="JSON file with a list of chat messages")
    memory.add_argument(
        "--pairs",
        type=int,
        default=None,
        help="Number of recent user-initiated pairs to keep (default: from config, 15)"
    )
    memory.add_argument(
        "--max-length",
        type=int,
        default=None,
        help="Tool results longer than this are compressed (default: from config, 800)"
    )
    memory.add_argument(
        "--config",
        default=None,
        help="Path to memory config JSON (default: $CTXEDIT_MEMORY_CONFIG or .ctxedit/memory.json)"
    )
    memory.set_defaults(func=cmd_memory)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run the ctxedit CLI and return its exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if os.path.exists(args.env_file):
        load_dotenv(args.env_file)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s: %(message)s"
        )

    try:
        return args.func(args)
    except CliError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}", markup=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
