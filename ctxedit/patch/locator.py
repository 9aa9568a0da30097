"""Fuzzy patch locator.

Finds the text an agent wants to replace even when its copy of the file has
drifted from what is on disk, and applies exactly one replacement.

Strategies are tried in order; the first one that finds any occurrence
decides the outcome:

1. exact: literal substring search.
2. escape-normalized: ``\\"`` in the pattern read as ``"``.
3. whitespace-normalized: trailing whitespace ignored on every line.
4. whitespace-collapsed: additionally, runs of spaces and tabs count as one.
5. line-ending-normalized: CRLF and LF treated alike, trailing whitespace
   ignored.
6. indentation-agnostic: whole lines compared with their indentation
   ignored; the replacement is re-indented to fit the file.

The remaining strategies compare whole lines (trimmed) and match a window
of lines whose size may differ slightly from the pattern's:

7. line-fuzzy: at least 70% of the pattern lines appear in the window.
8. boundary: the first and last pattern lines anchor the window.
9. substring: around the longest pattern line, at least 70% of the
   non-blank pattern lines appear.
10. levenshtein: line edit distance of at most 30% of the pattern lines.

Normalization is only used for comparison. Every match is mapped back to
the exact character range of the untouched content, and everything outside
that range is preserved byte for byte.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Set, Tuple

from .models import FailureReason, MatchResult, MatchStrategy
from .normalize import (
    NormalizedText,
    collapse_whitespace,
    compose,
    extend_over_trailing_whitespace,
    fix_escape_sequences,
    line_spans,
    normalize_line_endings,
    strip_trailing_whitespace,
)

logger = logging.getLogger(__name__)


# Not-found diagnostics
SIMILARITY_THRESHOLD = 0.4
HINT_SIMILARITY = 0.5
MIN_ANCHOR_LENGTH = 5
NGRAM_SIZE = 3
EXCERPT_LINES = 20

# Line-window strategies
WINDOW_SIZE_DELTAS = (0, 1, -1, 2, -2)
MIN_WINDOW_LINES = 2
LINE_FUZZY_MIN_LINES = 3
LINE_FUZZY_THRESHOLD = 0.7
BOUNDARY_MIN_LINES = 3
BOUNDARY_SLACK = 3
CONTAINMENT_MIN_LINES = 2
CONTAINMENT_THRESHOLD = 0.7
EDIT_DISTANCE_FRACTION = 0.3
TAB_WIDTH = 4


@dataclass(frozen=True)
class Candidate:
    """One occurrence, as a range of the original content."""
    start: int
    end: int
    replacement: str


# (rank, first line index, line count); a higher rank is a better window
Window = Tuple[Tuple[float, ...], int, int]


def _find_all(haystack: str, needle: str) -> List[int]:
    """Start offsets of every (possibly overlapping) occurrence."""
    positions = []
    if not needle:
        return positions
    pos = haystack.find(needle)
    while pos != -1:
        positions.append(pos)
        pos = haystack.find(needle, pos + 1)
    return positions


def line_number_at(content: str, offset: int) -> int:
    """1-based line number of a character offset."""
    return content.count("\n", 0, offset) + 1


def line_edit_distance(a: Sequence[str], b: Sequence[str]) -> int:
    """Levenshtein distance between two sequences of lines."""
    m, n = len(a), len(b)
    if abs(m - n) > max(m, n) * 0.5:
        return max(m, n)
    previous = list(range(n + 1))
    for i in range(1, m + 1):
        current = [i] + [0] * n
        for j in range(1, n + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            current[j] = min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost)
        previous = current
    return previous[n]


# ---------------------------------------------------------------------------
# Indentation
# ---------------------------------------------------------------------------

def _leading_whitespace(line: str) -> str:
    return line[:len(line) - len(line.lstrip())]


def _indent_width(indent: str) -> int:
    return len(indent.replace("\t", " " * TAB_WIDTH))


def _reindent(pattern_indent: str, file_indent: str, replacement: str) -> str:
    """Shift every non-blank replacement line by the indentation difference.

    The difference is measured in columns, tabs counting as four. When one
    indent extends the other, whole indent characters are added or removed
    so tab-indented files stay tab-indented.
    """
    diff = _indent_width(file_indent) - _indent_width(pattern_indent)
    if diff == 0:
        return replacement

    if diff > 0:
        if file_indent.startswith(pattern_indent):
            extra = file_indent[len(pattern_indent):]
        else:
            extra = " " * diff
        surplus = ""
    else:
        extra = ""
        surplus = pattern_indent[len(file_indent):] if pattern_indent.startswith(file_indent) else ""

    lines = []
    for line in replacement.split("\n"):
        if line.strip():
            if extra:
                line = extra + line
            elif surplus and line.startswith(surplus):
                line = line[len(surplus):]
            else:
                indent = _leading_whitespace(line)
                line = " " * max(0, _indent_width(indent) + diff) + line[len(indent):]
        lines.append(line)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Line helpers
# ---------------------------------------------------------------------------

def _content_lines(content: str) -> List[Tuple[int, int]]:
    """(start, end) of every line of ``content``, excluding ``\\r\\n``."""
    spans = []
    for start, end in line_spans(content):
        if end > start and content[end - 1] == "\r":
            end -= 1
        spans.append((start, end))
    return spans


def _pattern_lines(pattern: str) -> List[str]:
    """Pattern lines with leading and trailing blank lines dropped."""
    lines = normalize_line_endings(pattern).text.split("\n")
    while lines and not lines[-1].strip():
        lines.pop()
    while lines and not lines[0].strip():
        lines.pop(0)
    return lines


def _window_candidate(
    content: str,
    spans: List[Tuple[int, int]],
    first: int,
    size: int,
    pattern_lines: List[str],
    replacement: str,
) -> Candidate:
    """Candidate covering whole lines ``first .. first + size - 1``."""
    start, first_end = spans[first]
    end = spans[first + size - 1][1]
    file_indent = _leading_whitespace(content[start:first_end])
    return Candidate(
        start,
        end,
        _reindent(_leading_whitespace(pattern_lines[0]), file_indent, replacement),
    )


def _best_windows(windows: List[Window]) -> List[Tuple[int, int]]:
    """Best-ranked windows, dropping any that overlap an earlier one."""
    if not windows:
        return []
    best = max(rank for rank, _, _ in windows)
    chosen: List[Tuple[int, int]] = []
    for rank, first, size in sorted(windows, key=lambda w: (w[1], w[2])):
        if rank != best:
            continue
        if any(first < f + s and f < first + size for f, s in chosen):
            continue
        chosen.append((first, size))
    return chosen


def _window_sizes(pattern_size: int, line_count: int):
    """Window sizes to try, with their distance from the pattern size."""
    for delta in WINDOW_SIZE_DELTAS:
        size = pattern_size + delta
        if MIN_WINDOW_LINES <= size <= line_count:
            yield size, abs(delta)


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def _exact(content: str, pattern: str, replacement: str) -> List[Candidate]:
    return [Candidate(pos, pos + len(pattern), replacement) for pos in _find_all(content, pattern)]


def _escape_normalized(content: str, pattern: str, replacement: str) -> List[Candidate]:
    fixed = fix_escape_sequences(pattern)
    if fixed == pattern:
        return []
    return _exact(content, fixed, replacement)


def _normalized_search(
    normalizer: Callable[[str], NormalizedText],
    trim_trailing: bool,
) -> Callable[[str, str, str], List[Candidate]]:
    """Build a strategy that searches normalized text and maps hits back."""

    def strategy(content: str, pattern: str, replacement: str) -> List[Candidate]:
        haystack = normalizer(content)
        needle = normalizer(pattern).text
        if not needle.strip():
            return []

        candidates = []
        for pos in _find_all(haystack.text, needle):
            start, end = haystack.to_original_span(pos, pos + len(needle))
            if trim_trailing and not needle.endswith("\n"):
                end = extend_over_trailing_whitespace(content, end)
            candidates.append(Candidate(start, end, replacement))
        return candidates

    return strategy


def _line_strategy(
    find_windows: Callable[[List[str], List[str]], List[Window]],
) -> Callable[[str, str, str], List[Candidate]]:
    """Build a strategy that scores windows of trimmed lines."""

    def strategy(content: str, pattern: str, replacement: str) -> List[Candidate]:
        pattern_lines = _pattern_lines(pattern)
        if not pattern_lines:
            return []
        spans = _content_lines(content)
        lines = [content[start:end].strip() for start, end in spans]
        windows = find_windows([line.strip() for line in pattern_lines], lines)
        return [
            _window_candidate(content, spans, first, size, pattern_lines, replacement)
            for first, size in _best_windows(windows)
        ]

    return strategy


def _indentation_agnostic_windows(wanted: List[str], lines: List[str]) -> List[Window]:
    size = len(wanted)
    return [
        ((1.0,), first, size)
        for first in range(len(lines) - size + 1)
        if lines[first:first + size] == wanted
    ]


def _line_fuzzy_windows(wanted: List[str], lines: List[str]) -> List[Window]:
    if len(wanted) < LINE_FUZZY_MIN_LINES:
        return []
    windows = []
    for size, delta in _window_sizes(len(wanted), len(lines)):
        for first in range(len(lines) - size + 1):
            present = set(lines[first:first + size])
            matching = sum(1 for line in wanted if not line or line in present)
            score = matching / len(wanted)
            if score >= LINE_FUZZY_THRESHOLD:
                windows.append(((score, -delta), first, size))
    return windows


def _boundary_windows(wanted: List[str], lines: List[str]) -> List[Window]:
    if len(wanted) < BOUNDARY_MIN_LINES:
        return []
    first_anchor, last_anchor = wanted[0], wanted[-1]
    windows = []
    for first, line in enumerate(lines):
        if line != first_anchor:
            continue
        expected_last = first + len(wanted) - 1
        low = max(first + 1, expected_last - BOUNDARY_SLACK)
        high = min(len(lines) - 1, expected_last + BOUNDARY_SLACK)
        for last in range(low, high + 1):
            if lines[last] == last_anchor:
                size = last - first + 1
                windows.append(((-abs(size - len(wanted)),), first, size))
    return windows


def _substring_windows(wanted: List[str], lines: List[str]) -> List[Window]:
    required = [line for line in wanted if line]
    if len(required) < CONTAINMENT_MIN_LINES:
        return []
    anchor = max(required, key=len)
    anchor_offset = wanted.index(anchor)

    windows = []
    for index, line in enumerate(lines):
        if line != anchor:
            continue
        first = max(0, index - anchor_offset)
        region = lines[first:first + len(wanted) + 2]
        present = set(region)
        score = sum(1 for wanted_line in required if wanted_line in present) / len(required)
        if score < CONTAINMENT_THRESHOLD:
            continue
        # The window runs to the last region line the pattern mentions
        last = max(i for i, region_line in enumerate(region) if region_line in required)
        windows.append(((score,), first, last + 1))
    return windows


def _levenshtein_windows(wanted: List[str], lines: List[str]) -> List[Window]:
    if len(wanted) < MIN_WINDOW_LINES:
        return []
    max_distance = math.ceil(len(wanted) * EDIT_DISTANCE_FRACTION)
    wanted_set: Set[str] = set(wanted)
    windows = []
    for size, delta in _window_sizes(len(wanted), len(lines)):
        for first in range(len(lines) - size + 1):
            window = lines[first:first + size]
            # Every pattern line missing from the window costs at least one edit
            present = set(window)
            if sum(1 for line in wanted if line not in present) > max_distance:
                continue
            if not wanted_set & present:
                continue
            distance = line_edit_distance(wanted, window)
            if distance <= max_distance:
                windows.append(((-distance, -delta), first, size))
    return windows


STRATEGIES: Sequence[Tuple[MatchStrategy, Callable[[str, str, str], List[Candidate]]]] = (
    (MatchStrategy.EXACT, _exact),
    (MatchStrategy.ESCAPE_NORMALIZED, _escape_normalized),
    (MatchStrategy.WHITESPACE_NORMALIZED, _normalized_search(strip_trailing_whitespace, True)),
    (MatchStrategy.WHITESPACE_COLLAPSED, _normalized_search(collapse_whitespace, True)),
    (
        MatchStrategy.LINE_ENDING_NORMALIZED,
        _normalized_search(compose(normalize_line_endings, strip_trailing_whitespace), True),
    ),
    (MatchStrategy.INDENTATION_AGNOSTIC, _line_strategy(_indentation_agnostic_windows)),
    (MatchStrategy.LINE_FUZZY, _line_strategy(_line_fuzzy_windows)),
    (MatchStrategy.BOUNDARY, _line_strategy(_boundary_windows)),
    (MatchStrategy.SUBSTRING, _line_strategy(_substring_windows)),
    (MatchStrategy.LEVENSHTEIN, _line_strategy(_levenshtein_windows)),
)


# ---------------------------------------------------------------------------
# Disambiguation and diagnostics
# ---------------------------------------------------------------------------

def _closest_to_hint(content: str, candidates: List[Candidate], hint: int) -> Candidate:
    """Pick the candidate starting nearest the hint, preferring at-or-after on ties."""
    def distance(candidate: Candidate) -> Tuple[int, int]:
        line = line_number_at(content, candidate.start)
        return abs(line - hint), 0 if line >= hint else 1

    return min(candidates, key=distance)


def string_similarity(a: str, b: str) -> float:
    """Jaccard similarity of character 3-grams."""
    if a == b:
        return 1.0
    if len(a) < NGRAM_SIZE or len(b) < NGRAM_SIZE:
        return 0.0
    grams_a = {a[i:i + NGRAM_SIZE] for i in range(len(a) - NGRAM_SIZE + 1)}
    grams_b = {b[i:i + NGRAM_SIZE] for i in range(len(b) - NGRAM_SIZE + 1)}
    union = len(grams_a | grams_b)
    return len(grams_a & grams_b) / union if union else 0.0


def _numbered(lines: List[str], first: int) -> str:
    return "\n".join(f"L{first + i}: {line}" for i, line in enumerate(lines))


def _not_found(content: str, pattern: str, tried: List[str]) -> MatchResult:
    content_lines = normalize_line_endings(content).text.split("\n")
    pattern_lines = normalize_line_endings(pattern).text.split("\n")
    anchor = next((line.strip() for line in pattern_lines if line.strip()), "")

    closest_line: Optional[int] = None
    best = 0.0
    if len(anchor) >= MIN_ANCHOR_LENGTH:
        for i, line in enumerate(content_lines):
            trimmed = line.strip()
            if not trimmed:
                continue
            similarity = string_similarity(trimmed, anchor)
            if similarity > best and similarity > SIMILARITY_THRESHOLD:
                best = similarity
                closest_line = i + 1

    if closest_line is not None:
        first = max(1, closest_line - 2)
        last = min(len(content_lines), closest_line + len(pattern_lines) + 1)
        excerpt = _numbered(content_lines[first - 1:last], first)
    else:
        excerpt = _numbered(content_lines[:EXCERPT_LINES], 1)

    if closest_line is not None and best > HINT_SIMILARITY:
        hint = (
            f"Found similar text near line {closest_line} ({round(best * 100)}% similar). "
            f"Re-read the file from line {max(1, closest_line - 5)} to see the exact content."
        )
    else:
        hint = "Re-read the file, then copy the exact text you want to replace."

    return MatchResult.failure(
        f"old_string not found: none of the {len(tried)} matching strategies "
        f"({', '.join(tried)}) matched. The text may have changed since you last read the file.",
        FailureReason.NOT_FOUND,
        strategies_tried=tried,
        closest_line=closest_line,
        similarity=round(best * 100) if closest_line is not None else None,
        actual_content=excerpt,
        hint=hint,
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def locate(
    content: str,
    old_string: str,
    new_string: str,
    start_line_hint: Optional[int] = None,
) -> MatchResult:
    """Find ``old_string`` in ``content`` and replace exactly one occurrence.

    Args:
        content: Current file content.
        old_string: Text the caller wants replaced, possibly with drifted
            whitespace, escaping or line endings.
        new_string: Replacement text.
        start_line_hint: Optional 1-based line used to choose between
            several occurrences.

    Returns:
        MatchResult. Failures are returned, never raised: an empty pattern,
        several occurrences without a hint, or no occurrence at all.
    """
    if not old_string.strip():
        return MatchResult.failure(
            "old_string is empty. Provide the text you want to replace.",
            FailureReason.EMPTY_PATTERN,
        )

    tried: List[str] = []
    for strategy, find in STRATEGIES:
        tried.append(strategy.value)
        candidates = find(content, old_string, new_string)
        if not candidates:
            continue

        count = len(candidates)
        if count == 1:
            chosen = candidates[0]
        elif start_line_hint is not None:
            chosen = _closest_to_hint(content, candidates, start_line_hint)
        else:
            lines = [line_number_at(content, c.start) for c in candidates]
            return MatchResult.failure(
                f"old_string matches {count} locations (lines {', '.join(map(str, lines))}). "
                "Provide start_line to choose one, or include more surrounding context.",
                FailureReason.AMBIGUOUS,
                match_count=count,
                match_lines=lines,
                strategy=strategy.value,
            )

        match_line = line_number_at(content, chosen.start)
        logger.debug(
            "Matched with %s strategy at line %d (%d candidate(s))",
            strategy.value, match_line, count,
        )
        return MatchResult.success(
            strategy=strategy.value,
            match_count=count,
            match_line=match_line,
            patched_content=content[:chosen.start] + chosen.replacement + content[chosen.end:],
        )

    return _not_found(content, old_string, tried)
