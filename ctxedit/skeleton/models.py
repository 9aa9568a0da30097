"""Data types for source skeletons."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class ItemKind(str, Enum):
    """Kind of structural unit found in a source file."""
    IMPORT = "import"
    CLASS = "class"
    FUNCTION = "function"
    METHOD = "method"
    INTERFACE = "interface"
    TYPE = "type"
    VARIABLE = "variable"
    EXPORT = "export"


@dataclass
class SkeletonItem:
    """One structural unit of a source file.

    Attributes:
        kind: What sort of declaration this is.
        name: Declared name, or a synthetic one such as ``"imports"``.
        line: 1-based start line.
        end_line: 1-based inclusive end line, when known.
        children: Methods and accessors of a class, in source order.
        signature: Short preview of the declaring line.
    """
    kind: ItemKind
    name: str
    line: int
    end_line: Optional[int] = None
    children: List['SkeletonItem'] = field(default_factory=list)
    signature: Optional[str] = None


@dataclass
class FileSkeleton:
    """Structural outline of a whole file."""
    file_path: str
    language: str
    total_lines: int
    items: List[SkeletonItem] = field(default_factory=list)

    def items_of(self, kind: ItemKind) -> List[SkeletonItem]:
        """Top-level items of the given kind, in source order."""
        return [item for item in self.items if item.kind == kind]
