"""Pydantic models for the diagram pipeline."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class DiagramMatch(BaseModel):
    """A diagram block located in the original, unmodified document text.

    ``start``/``end`` form a half-open span, so
    ``text[start:end] == source_text``.
    """

    model_config = ConfigDict(frozen=True)

    source_text: str
    code: str
    start: int = Field(ge=0)
    end: int = Field(ge=0)
    syntax: str = ""


class RenderOutcome(BaseModel):
    """Result of rendering one diagram. Failures carry ``error`` instead of raising."""

    ok: bool
    image_path: Path | None = None
    error: str | None = None


class PipelineResult(BaseModel):
    """Outcome of processing one document's diagrams."""

    content: str
    diagram_count: int = 0
    errors: list[str] = Field(default_factory=list)
