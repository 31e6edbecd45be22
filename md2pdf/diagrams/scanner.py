"""Locate Mermaid diagram blocks in markdown text."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import cached_property

from .models import DiagramMatch


@dataclass(frozen=True)
class DiagramSyntax:
    """One delimiter grammar: an opening marker line and a closing marker.

    The body between them is matched non-greedily across lines, so two
    consecutive blocks of the same syntax never merge into one.
    """

    name: str
    opening: str
    closing: str

    @cached_property
    def pattern(self) -> re.Pattern[str]:
        return re.compile(
            rf"{re.escape(self.opening)}[ \t]*\r?\n(.*?){re.escape(self.closing)}",
            re.DOTALL,
        )


FENCED = DiagramSyntax(name="fenced", opening="```mermaid", closing="```")
TRIPLE_COLON = DiagramSyntax(name="triple-colon", opening=":::mermaid", closing=":::")

DEFAULT_SYNTAXES: tuple[DiagramSyntax, ...] = (FENCED, TRIPLE_COLON)


def scan_diagrams(
    text: str,
    syntaxes: tuple[DiagramSyntax, ...] | list[DiagramSyntax] = DEFAULT_SYNTAXES,
) -> list[DiagramMatch]:
    """Find every diagram block for every syntax, sorted by start offset.

    Each syntax is scanned independently and the results merged by position.
    Overlapping matches from different syntaxes are not reconciled; inputs are
    expected not to nest one syntax inside another.
    """
    matches: list[DiagramMatch] = []
    for syntax in syntaxes:
        for m in syntax.pattern.finditer(text):
            matches.append(
                DiagramMatch(
                    source_text=m.group(0),
                    code=m.group(1).strip(),
                    start=m.start(),
                    end=m.end(),
                    syntax=syntax.name,
                )
            )
    # sort() is stable: equal starts keep syntax order
    matches.sort(key=lambda d: d.start)
    return matches
