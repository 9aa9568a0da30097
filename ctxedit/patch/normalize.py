"""Offset-preserving text normalizers.

Each normalizer returns the normalized text together with, for every
normalized character, the index of the character it came from in the
original. A match found in normalized text can then be mapped back to the
exact original range it covers, so replacement never touches text outside
the match.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Tuple


@dataclass(frozen=True)
class NormalizedText:
    """Normalized text plus a map back to original offsets."""

    text: str
    offsets: Tuple[int, ...]
    original: str

    def to_original_span(self, start: int, end: int) -> Tuple[int, int]:
        """Map a non-empty normalized span ``[start, end)`` to the original."""
        return self.offsets[start], self.offsets[end - 1] + 1


def identity(text: str) -> NormalizedText:
    return NormalizedText(text, tuple(range(len(text))), text)


def _build(original: str, kept: List[int]) -> NormalizedText:
    return NormalizedText("".join(original[i] for i in kept), tuple(kept), original)


def line_spans(text: str):
    """Yield (start, end) of each line's content, excluding the ``\\n``."""
    start = 0
    for match in re.finditer("\n", text):
        yield start, match.start()
        start = match.end()
    yield start, len(text)


def strip_trailing_whitespace(text: str) -> NormalizedText:
    """Drop spaces and tabs at the end of every line."""
    kept: List[int] = []
    for start, end in line_spans(text):
        stop = end
        while stop > start and text[stop - 1] in " \t":
            stop -= 1
        kept.extend(range(start, stop))
        if end < len(text):
            kept.append(end)
    return _build(text, kept)


def collapse_whitespace(text: str) -> NormalizedText:
    """Drop trailing spaces and tabs and squeeze inner runs to one space.

    Leading indentation is kept as is.
    """
    trimmed = strip_trailing_whitespace(text)
    chars: List[str] = []
    kept: List[int] = []
    indenting = True
    previous_blank = False
    for char, offset in zip(trimmed.text, trimmed.offsets):
        blank = char in " \t"
        if char == "\n":
            indenting = True
        elif not blank:
            indenting = False
        elif not indenting:
            if previous_blank:
                continue
            char = " "
        chars.append(char)
        kept.append(offset)
        previous_blank = blank
    return NormalizedText("".join(chars), tuple(kept), text)


def normalize_line_endings(text: str) -> NormalizedText:
    """Turn CRLF into LF."""
    kept = [
        i for i, char in enumerate(text)
        if not (char == "\r" and i + 1 < len(text) and text[i + 1] == "\n")
    ]
    return _build(text, kept)


def extend_over_trailing_whitespace(text: str, end: int) -> int:
    """Move ``end`` past spaces and tabs that run up to a line end."""
    stop = end
    while stop < len(text) and text[stop] in " \t":
        stop += 1
    if stop == len(text) or text[stop] in "\r\n":
        return stop
    return end


def fix_escape_sequences(text: str) -> str:
    """Undo accidental double-encoding of quotes (``\\"`` becomes ``"``)."""
    return text.replace('\\"', '"').replace("\\'", "'")


def compose(*normalizers: Callable[[str], NormalizedText]) -> Callable[[str], NormalizedText]:
    """Chain normalizers left to right, keeping offsets into the first input."""

    def normalize(text: str) -> NormalizedText:
        offsets: Tuple[int, ...] = tuple(range(len(text)))
        current = text
        for normalizer in normalizers:
            step = normalizer(current)
            offsets = tuple(offsets[i] for i in step.offsets)
            current = step.text
        return NormalizedText(current, offsets, text)

    return normalize
