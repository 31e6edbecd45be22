"""Running-offset splicing of replacements into a progressively edited text."""

from __future__ import annotations

from .models import DiagramMatch


class TextSplicer:
    """Applies span replacements to text whose length changes with each edit.

    Spans are expressed against the *original* text. ``offset`` tracks the net
    length change introduced by every replacement applied so far, which is
    valid for any later span because all earlier edits happened strictly
    before it. Matches must therefore be applied in ascending ``start`` order.
    """

    def __init__(self, text: str) -> None:
        self._text = text
        self._original_length = len(text)
        self.offset = 0
        self._cursor = 0  # end of the last span seen, in original coordinates

    @property
    def text(self) -> str:
        return self._text

    def replace(self, match: DiagramMatch, replacement: str) -> None:
        """Splice *replacement* over *match*'s original span."""
        self._check_order(match)
        start = match.start + self.offset
        end = match.end + self.offset
        self._text = self._text[:start] + replacement + self._text[end:]
        self.offset += len(replacement) - len(match.source_text)
        self._cursor = match.end

    def skip(self, match: DiagramMatch) -> None:
        """Leave *match* untouched but advance past it."""
        self._check_order(match)
        self._cursor = match.end

    def _check_order(self, match: DiagramMatch) -> None:
        if match.start < self._cursor:
            raise ValueError(
                f"Span [{match.start}, {match.end}) overlaps or precedes an "
                f"already applied span ending at {self._cursor}"
            )
        if match.end > self._original_length or match.end < match.start:
            raise ValueError(
                f"Span [{match.start}, {match.end}) is outside the original "
                f"text of length {self._original_length}"
            )


def splice_all(text: str, edits: list[tuple[DiagramMatch, str | None]]) -> str:
    """Apply ``(match, replacement)`` pairs in order; ``None`` keeps the span."""
    splicer = TextSplicer(text)
    for match, replacement in edits:
        if replacement is None:
            splicer.skip(match)
        else:
            splicer.replace(match, replacement)
    return splicer.text
