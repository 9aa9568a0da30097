"""Result types for the fuzzy patch locator."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class MatchStrategy(str, Enum):
    """Matching strategies, in the order they are attempted."""
    EXACT = "exact"
    ESCAPE_NORMALIZED = "escape-normalized"
    WHITESPACE_NORMALIZED = "whitespace-normalized"
    WHITESPACE_COLLAPSED = "whitespace-collapsed"
    LINE_ENDING_NORMALIZED = "line-ending-normalized"
    INDENTATION_AGNOSTIC = "indentation-agnostic"
    LINE_FUZZY = "line-fuzzy"
    BOUNDARY = "boundary"
    SUBSTRING = "substring"
    LEVENSHTEIN = "levenshtein"


class FailureReason(str, Enum):
    """Why a locate call failed."""
    EMPTY_PATTERN = "empty_pattern"
    AMBIGUOUS = "ambiguous"
    NOT_FOUND = "not_found"


@dataclass
class MatchResult:
    """Outcome of a locate call.

    On success ``found`` is True and ``strategy``, ``match_count``,
    ``match_line`` and ``patched_content`` are set. On failure ``found`` is
    False and ``error`` explains what to do next; ``details`` carries
    diagnostics (``reason`` and, for ambiguous matches, ``match_count``).
    """

    found: bool
    strategy: Optional[str] = None
    match_count: int = 0
    match_line: Optional[int] = None
    patched_content: Optional[str] = None
    error: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(
        cls,
        strategy: str,
        match_count: int,
        match_line: int,
        patched_content: str,
    ) -> 'MatchResult':
        return cls(
            found=True,
            strategy=strategy,
            match_count=match_count,
            match_line=match_line,
            patched_content=patched_content,
        )

    @classmethod
    def failure(cls, error: str, reason: FailureReason, **details: Any) -> 'MatchResult':
        return cls(
            found=False,
            match_count=details.get("match_count", 0),
            error=error,
            details={"reason": reason.value, **details},
        )

    @property
    def reason(self) -> Optional[str]:
        return self.details.get("reason")
