"""Pydantic models for single-file and batch conversion."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ConversionError(Exception):
    """A document-level failure: missing input or failed PDF generation."""


class ConversionResult(BaseModel):
    """Outcome of converting one markdown file."""

    success: bool
    input_file: str
    output_file: str | None = None
    error: str | None = None
    duration_ms: int = 0
    diagram_count: int = 0
    diagram_errors: list[str] = Field(default_factory=list)


class BatchResult(BaseModel):
    """Aggregate of a batch run. ``results`` keeps submission order."""

    total: int
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    results: list[ConversionResult] = Field(default_factory=list)
    total_duration_ms: int = 0
