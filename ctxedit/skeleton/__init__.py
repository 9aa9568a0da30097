"""Source skeleton extraction.

Turns file content into a structural outline (imports, classes and their
methods, functions, types) with line numbers, and renders it as a compact
line of text that can stand in for the full file in a model prompt.

Usage:
    from ctxedit.skeleton import extract_skeleton, format_skeleton_compact

    skeleton = extract_skeleton(source_text, "src/app.ts")
    print(format_skeleton_compact(skeleton))
    # [src/app.ts] 120L | imports:L1-4 | classes:[App:L6{render:L12}] | fn:[main:L100]
"""

from .extractor import LineRule, extract_skeleton
from .formatter import format_skeleton_compact
from .languages import (
    EXTENSION_LANGUAGES,
    UNKNOWN_LANGUAGE,
    LanguageFamily,
    detect_language,
    language_family,
)
from .models import FileSkeleton, ItemKind, SkeletonItem

__all__ = [
    # Types
    "FileSkeleton",
    "ItemKind",
    "SkeletonItem",
    "LineRule",
    # Languages
    "EXTENSION_LANGUAGES",
    "UNKNOWN_LANGUAGE",
    "LanguageFamily",
    "detect_language",
    "language_family",
    # Extraction and rendering
    "extract_skeleton",
    "format_skeleton_compact",
]
