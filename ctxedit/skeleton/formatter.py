"""Compact single-line rendering of a FileSkeleton.

Format::

    [<path>] <N>L | imports:L1-3,L7 | classes:[Name:L9{method:L10,...};...] | fn:[name:L40,...] | types:[Name:L2,...]

Sections with nothing to show are omitted. Variables and bare exports are
not rendered.
"""

from typing import List

from .models import FileSkeleton, ItemKind, SkeletonItem


def _line_range(item: SkeletonItem) -> str:
    if item.end_line is not None and item.end_line > item.line:
        return f"L{item.line}-{item.end_line}"
    return f"L{item.line}"


def _class_entry(item: SkeletonItem) -> str:
    entry = f"{item.name}:L{item.line}"
    if item.children:
        methods = ",".join(f"{child.name}:L{child.line}" for child in item.children)
        entry += f"{{{methods}}}"
    return entry


def format_skeleton_compact(skeleton: FileSkeleton) -> str:
    """Render a skeleton as one line of plain text for a model prompt."""
    parts: List[str] = [f"[{skeleton.file_path}] {skeleton.total_lines}L"]

    imports: List[str] = []
    classes: List[str] = []
    functions: List[str] = []
    types: List[str] = []

    for item in skeleton.items:
        if item.kind == ItemKind.IMPORT:
            imports.append(_line_range(item))
        elif item.kind == ItemKind.CLASS:
            classes.append(_class_entry(item))
        elif item.kind == ItemKind.FUNCTION:
            functions.append(f"{item.name}:L{item.line}")
        elif item.kind in (ItemKind.INTERFACE, ItemKind.TYPE):
            types.append(f"{item.name}:L{item.line}")

    if imports:
        parts.append(f"imports:{','.join(imports)}")
    if classes:
        parts.append(f"classes:[{';'.join(classes)}]")
    if functions:
        parts.append(f"fn:[{','.join(functions)}]")
    if types:
        parts.append(f"types:[{','.join(types)}]")

    return " | ".join(parts)
