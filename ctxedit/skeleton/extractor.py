"""Source skeleton extraction.

Reduces file content to a structural outline (imports, classes with their
methods, functions, interfaces and types) with line numbers, so that a file
can be remembered for a fraction of its token cost.

Extraction is heuristic and line based. Each language family is a table of
named rules evaluated top to bottom per line (first match wins), driven by a
small explicit scan state:

- ``TopLevel``: not inside any tracked class.
- ``InBraceClass``: inside a curly-brace class body, tracking brace depth.
- ``InIndentClass``: inside an indentation-scoped class body.

Extraction runs in a single pass and is linear in the number of lines.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Sequence, Union

from .languages import LanguageFamily, detect_language, language_family
from .models import FileSkeleton, ItemKind, SkeletonItem

logger = logging.getLogger(__name__)


# Preview lengths for the ``signature`` field
METHOD_SIGNATURE_LENGTH = 80
FUNCTION_SIGNATURE_LENGTH = 100


@dataclass(frozen=True)
class LineRule:
    """A named pattern that turns a matching (trimmed) line into an item.

    Attributes:
        name: Rule identifier, for debugging.
        pattern: Anchored regex; group 1 captures the declared name.
        kind: Kind of the produced item.
        name_prefix: Prepended to the captured name (e.g. ``"get "``).
        default_name: Used when group 1 did not participate in the match.
        signature_length: If set, the item gets a signature preview.
    """
    name: str
    pattern: Pattern[str]
    kind: ItemKind
    name_prefix: str = ""
    default_name: Optional[str] = None
    signature_length: Optional[int] = None

    def apply(self, trimmed: str, line_num: int) -> Optional[SkeletonItem]:
        match = self.pattern.match(trimmed)
        if not match:
            return None
        name = match.group(1) or self.default_name
        if not name:
            return None
        signature = trimmed[:self.signature_length] if self.signature_length else None
        return SkeletonItem(
            kind=self.kind,
            name=self.name_prefix + name,
            line=line_num,
            signature=signature,
        )


def _first_match(rules: Sequence[LineRule], trimmed: str, line_num: int) -> Optional[SkeletonItem]:
    for rule in rules:
        item = rule.apply(trimmed, line_num)
        if item is not None:
            return item
    return None


# ---------------------------------------------------------------------------
# Scan state
# ---------------------------------------------------------------------------

@dataclass
class TopLevel:
    """Not inside any tracked class."""


@dataclass
class InBraceClass:
    """Inside a class whose body is delimited by braces.

    ``opened`` stays False while the class header has been seen but its
    opening brace has not (brace on the following line).
    """
    item: SkeletonItem
    depth: int = 0
    opened: bool = False


@dataclass
class InIndentClass:
    """Inside a class whose body is delimited by indentation."""
    item: SkeletonItem
    indent: int
    body_indent: Optional[int] = None
    header_depth: int = 0


ScanState = Union[TopLevel, InBraceClass, InIndentClass]


def _add_import(items: List[SkeletonItem], start: int, end: int) -> SkeletonItem:
    """Record an import range, merging it into a directly preceding one."""
    last = items[-1] if items else None
    if last is not None and last.kind == ItemKind.IMPORT and last.end_line == start - 1:
        last.end_line = end
        return last
    item = SkeletonItem(kind=ItemKind.IMPORT, name="imports", line=start, end_line=end)
    items.append(item)
    return item


# ---------------------------------------------------------------------------
# Brace-scoped family (TypeScript, JavaScript, Vue, Svelte)
# ---------------------------------------------------------------------------

# Continuation line of a block comment: "* text", "*/" or a lone "*"
BLOCK_COMMENT_LINE = re.compile(r"^\*(?:\s|/|$)")

BRACE_IMPORT = re.compile(r"""^import\s+(?:type\s+)?(?:[\w*$\s{},]+?\s+from\s+)?['"][^'"]+['"]""")
BRACE_IMPORT_OPEN = re.compile(r"^import\s+(?:type\s+)?(?:[\w$]+\s*,\s*)?\{[^}]*$")
BRACE_CLASS = re.compile(
    r"^(?:export\s+)?(?:default\s+)?(?:declare\s+)?(?:abstract\s+)?class\s+([\w$]+)"
)
CONTROL_FLOW = re.compile(r"^(?:if|for|while|switch|catch)\b")

BRACE_MEMBER_RULES = (
    LineRule(
        "method",
        re.compile(
            r"^(?:(?:private|public|protected)\s+)?(?:static\s+)?(?:override\s+)?"
            r"(?:async\s+)?(?:readonly\s+)?\*?\s*(#?[\w$]+)\s*(?:<[^>]*>)?\s*\("
        ),
        ItemKind.METHOD,
        signature_length=METHOD_SIGNATURE_LENGTH,
    ),
    LineRule(
        "getter",
        re.compile(r"^(?:(?:private|public|protected)\s+)?(?:static\s+)?get\s+([\w$]+)\s*\("),
        ItemKind.METHOD,
        name_prefix="get ",
    ),
    LineRule(
        "setter",
        re.compile(r"^(?:(?:private|public|protected)\s+)?(?:static\s+)?set\s+([\w$]+)\s*\("),
        ItemKind.METHOD,
        name_prefix="set ",
    ),
)

BRACE_DECLARATION_RULES = (
    LineRule(
        "interface",
        re.compile(r"^(?:export\s+)?(?:declare\s+)?interface\s+([\w$]+)"),
        ItemKind.INTERFACE,
    ),
    LineRule(
        "type",
        re.compile(r"^(?:export\s+)?(?:declare\s+)?type\s+([\w$]+)\s*(?:<[^>]*>)?\s*="),
        ItemKind.TYPE,
    ),
    LineRule(
        "enum",
        re.compile(r"^(?:export\s+)?(?:declare\s+)?(?:const\s+)?enum\s+([\w$]+)"),
        ItemKind.TYPE,
        name_prefix="enum ",
    ),
    LineRule(
        "function",
        re.compile(
            r"^(?:export\s+)?(?:default\s+)?(?:declare\s+)?(?:async\s+)?"
            r"function\s*\*?\s*([\w$]+)\s*(?:<[^>]*>)?\s*\("
        ),
        ItemKind.FUNCTION,
        signature_length=FUNCTION_SIGNATURE_LENGTH,
    ),
    LineRule(
        "arrow_function",
        re.compile(
            r"^(?:export\s+)?(?:const|let|var)\s+([\w$]+)\s*(?::[^=]+)?=\s*(?:async\s+)?"
            r"(?:\([^)]*\)|[\w$]+)\s*(?::[^=]+)?=>"
        ),
        ItemKind.FUNCTION,
        signature_length=FUNCTION_SIGNATURE_LENGTH,
    ),
    LineRule(
        "export_default",
        re.compile(
            r"^export\s+default\s+(?:(?:abstract\s+)?class\s+|(?:async\s+)?function\s*\*?\s*"
            r"|(?:const|let|var)\s+)?([\w$]+)?"
        ),
        ItemKind.EXPORT,
        default_name="default",
    ),
)


def _open_brace_class(item: SkeletonItem, line: str, net: int, line_num: int) -> ScanState:
    if "{" not in line:
        return InBraceClass(item)
    if net <= 0:
        # Whole body on one line, e.g. ``class Empty {}``
        item.end_line = line_num
        return TopLevel()
    return InBraceClass(item, depth=net, opened=True)


def _advance_brace_class(state: InBraceClass, trimmed: str, net: int, line_num: int) -> ScanState:
    # Members are only recognised directly in the class body, never inside
    # method bodies where calls look just like signatures.
    if state.opened and state.depth == 1 and not CONTROL_FLOW.match(trimmed):
        member = _first_match(BRACE_MEMBER_RULES, trimmed, line_num)
        if member is not None:
            state.item.children.append(member)

    depth = state.depth + net
    if depth <= 0:
        state.item.end_line = line_num
        return TopLevel()
    return InBraceClass(state.item, depth=depth, opened=True)


def _extract_brace_skeleton(lines: List[str]) -> List[SkeletonItem]:
    items: List[SkeletonItem] = []
    state: ScanState = TopLevel()
    import_start: Optional[int] = None
    in_block_comment = False

    for index, line in enumerate(lines):
        line_num = index + 1
        trimmed = line.strip()

        if in_block_comment:
            in_block_comment = "*/" not in trimmed
            continue
        if trimmed.startswith("/*"):
            in_block_comment = "*/" not in trimmed[2:]
            continue
        if not trimmed or trimmed.startswith("//") or BLOCK_COMMENT_LINE.match(trimmed):
            continue

        net = line.count("{") - line.count("}")

        if import_start is not None:
            if "}" in trimmed:
                _add_import(items, import_start, line_num)
                import_start = None
            continue

        if BRACE_IMPORT_OPEN.match(trimmed):
            import_start = line_num
            continue

        if BRACE_IMPORT.match(trimmed):
            _add_import(items, line_num, line_num)
            continue

        class_match = BRACE_CLASS.match(trimmed)
        if class_match:
            item = SkeletonItem(kind=ItemKind.CLASS, name=class_match.group(1), line=line_num)
            items.append(item)
            state = _open_brace_class(item, line, net, line_num)
            continue

        if isinstance(state, InBraceClass):
            if state.opened or "{" in line:
                state = _advance_brace_class(state, trimmed, net, line_num)
                continue
            # Header without a body (``declare class X;``): stop tracking it
            state = TopLevel()

        item = _first_match(BRACE_DECLARATION_RULES, trimmed, line_num)
        if item is not None:
            items.append(item)

    if import_start is not None:
        _add_import(items, import_start, len(lines))
    if isinstance(state, InBraceClass):
        state.item.end_line = len(lines)

    return items


# ---------------------------------------------------------------------------
# Indentation-scoped family (Python)
# ---------------------------------------------------------------------------

INDENT_IMPORT = re.compile(r"^(?:import\s+[\w.]+|from\s+[\w.]+\s+import\s+\S)")
INDENT_CLASS = re.compile(r"^class\s+(\w+)\s*[(:]")
INDENT_DEF = re.compile(r"^(?:async\s+)?def\s+(\w+)\s*\(")

TRIPLE_QUOTES = ('"""', "'''")


def _unclosed_triple_quote(trimmed: str) -> Optional[str]:
    for delimiter in TRIPLE_QUOTES:
        if trimmed.count(delimiter) % 2 == 1:
            return delimiter
    return None


def _extract_indent_skeleton(lines: List[str]) -> List[SkeletonItem]:
    items: List[SkeletonItem] = []
    state: ScanState = TopLevel()
    open_import: Optional[SkeletonItem] = None
    in_string: Optional[str] = None

    for index, line in enumerate(lines):
        line_num = index + 1
        trimmed = line.strip()

        if in_string is not None:
            if line.count(in_string) % 2 == 1:
                in_string = None
            continue

        if not trimmed or trimmed.startswith("#"):
            continue

        in_string = _unclosed_triple_quote(trimmed)
        indent = len(line) - len(line.lstrip())

        if open_import is not None:
            open_import.end_line = line_num
            if ")" in trimmed:
                open_import = None
            continue

        if isinstance(state, InIndentClass) and state.header_depth > 0:
            state.header_depth += trimmed.count("(") - trimmed.count(")")
            continue

        # Only code-bearing lines reach this point, so comments and string
        # bodies can never close a class.
        if isinstance(state, InIndentClass) and indent <= state.indent:
            state.item.end_line = line_num - 1
            state = TopLevel()

        if INDENT_IMPORT.match(trimmed):
            item = _add_import(items, line_num, line_num)
            if trimmed.count("(") > trimmed.count(")"):
                open_import = item
            continue

        class_match = INDENT_CLASS.match(trimmed)
        if class_match and isinstance(state, TopLevel):
            item = SkeletonItem(kind=ItemKind.CLASS, name=class_match.group(1), line=line_num)
            items.append(item)
            state = InIndentClass(
                item,
                indent=indent,
                header_depth=max(0, trimmed.count("(") - trimmed.count(")")),
            )
            continue

        def_match = INDENT_DEF.match(trimmed)

        if isinstance(state, InIndentClass):
            if state.body_indent is None:
                state.body_indent = indent
            if def_match and indent == state.body_indent:
                state.item.children.append(SkeletonItem(
                    kind=ItemKind.METHOD,
                    name=def_match.group(1),
                    line=line_num,
                    signature=trimmed[:METHOD_SIGNATURE_LENGTH],
                ))
            continue

        if def_match and indent == 0:
            items.append(SkeletonItem(
                kind=ItemKind.FUNCTION,
                name=def_match.group(1),
                line=line_num,
                signature=trimmed[:FUNCTION_SIGNATURE_LENGTH],
            ))

    if isinstance(state, InIndentClass):
        state.item.end_line = len(lines)

    return items


# ---------------------------------------------------------------------------
# Generic fallback
# ---------------------------------------------------------------------------

GENERIC_FUNCTION = re.compile(r"\b(?:function|def|fn|func)\s+(\w+)", re.IGNORECASE)
GENERIC_TYPE = re.compile(r"\b(?:class|struct|type)\s+(\w+)", re.IGNORECASE)


def _extract_generic_skeleton(lines: List[str]) -> List[SkeletonItem]:
    items: List[SkeletonItem] = []
    for index, line in enumerate(lines):
        match = GENERIC_FUNCTION.search(line)
        if match:
            items.append(SkeletonItem(kind=ItemKind.FUNCTION, name=match.group(1), line=index + 1))
            continue
        match = GENERIC_TYPE.search(line)
        if match:
            items.append(SkeletonItem(kind=ItemKind.CLASS, name=match.group(1), line=index + 1))
    return items


_FAMILY_EXTRACTORS = {
    LanguageFamily.BRACE: _extract_brace_skeleton,
    LanguageFamily.INDENT: _extract_indent_skeleton,
    LanguageFamily.GENERIC: _extract_generic_skeleton,
}


def extract_skeleton(content: str, file_path: str) -> FileSkeleton:
    """Extract the structural outline of a file.

    The language is chosen from the file extension alone. Unknown languages
    fall back to a keyword scan, so every file yields some outline, possibly
    an empty one.

    Args:
        content: Full text of the file.
        file_path: Path used for language detection and echoed in the result.

    Returns:
        FileSkeleton with ``total_lines`` counted as newline-separated lines.
    """
    language = detect_language(file_path)
    lines = content.split("\n")
    items = _FAMILY_EXTRACTORS[language_family(language)](lines)

    logger.debug(
        "Extracted %d skeleton items from %s (%s, %d lines)",
        len(items), file_path, language, len(lines),
    )

    return FileSkeleton(
        file_path=file_path,
        language=language,
        total_lines=len(lines),
        items=items,
    )
