"""Fault-tolerant edit application.

Usage:
    from ctxedit.patch import locate

    result = locate(content, old_string, new_string, start_line_hint=42)
    if result.found:
        content = result.patched_content
    else:
        print(result.error, result.details)
"""

from .locator import STRATEGIES, line_edit_distance, line_number_at, locate, string_similarity
from .models import FailureReason, MatchResult, MatchStrategy
from .normalize import (
    NormalizedText,
    collapse_whitespace,
    compose,
    fix_escape_sequences,
    normalize_line_endings,
    strip_trailing_whitespace,
)

__all__ = [
    "locate",
    "MatchResult",
    "MatchStrategy",
    "FailureReason",
    "STRATEGIES",
    "line_number_at",
    "string_similarity",
    "line_edit_distance",
    "NormalizedText",
    "fix_escape_sequences",
    "strip_trailing_whitespace",
    "collapse_whitespace",
    "normalize_line_endings",
    "compose",
]
