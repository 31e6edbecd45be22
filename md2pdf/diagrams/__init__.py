"""Mermaid diagram pipeline: scanning, rendering, and splicing."""

from md2pdf.diagrams.models import DiagramMatch, PipelineResult, RenderOutcome
from md2pdf.diagrams.processor import DiagramProcessor
from md2pdf.diagrams.renderer import DiagramRenderer
from md2pdf.diagrams.scanner import (
    DEFAULT_SYNTAXES,
    FENCED,
    TRIPLE_COLON,
    DiagramSyntax,
    scan_diagrams,
)
from md2pdf.diagrams.splicer import TextSplicer, splice_all

__all__ = [
    "DEFAULT_SYNTAXES",
    "DiagramMatch",
    "DiagramProcessor",
    "DiagramRenderer",
    "DiagramSyntax",
    "FENCED",
    "PipelineResult",
    "RenderOutcome",
    "TRIPLE_COLON",
    "TextSplicer",
    "scan_diagrams",
    "splice_all",
]
