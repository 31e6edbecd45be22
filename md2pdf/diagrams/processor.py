"""Per-document diagram pipeline: scan, render, splice."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from md2pdf.config.models import MermaidOptions

from .models import DiagramMatch, PipelineResult, RenderOutcome
from .renderer import DiagramRenderer
from .scanner import DEFAULT_SYNTAXES, DiagramSyntax, scan_diagrams
from .splicer import splice_all

logger = logging.getLogger(__name__)


class DiagramProcessor:
    """Replaces every Mermaid block in a document with a rendered image link.

    One processor owns one renderer workspace, so create a processor per
    document and call ``cleanup()`` when the document is done.
    """

    def __init__(
        self,
        options: MermaidOptions | None = None,
        *,
        renderer: DiagramRenderer | None = None,
        syntaxes: tuple[DiagramSyntax, ...] = DEFAULT_SYNTAXES,
        render_concurrency: int = 1,
    ) -> None:
        if render_concurrency < 1:
            raise ValueError("render_concurrency must be at least 1")
        self.options = options or MermaidOptions()
        self.renderer = renderer or DiagramRenderer(self.options)
        self.syntaxes = syntaxes
        self.render_concurrency = render_concurrency

    def extract_diagrams(self, content: str) -> list[DiagramMatch]:
        return scan_diagrams(content, self.syntaxes)

    async def process_markdown(
        self,
        content: str,
        output_dir: str | Path,
        base_name: str,
    ) -> PipelineResult:
        """Render all diagrams in *content* into *output_dir* and splice in image links.

        Diagram ``n`` (1-based, in document order) is written to
        ``<base_name>-diagram-<n>.<ext>``. Failed diagrams keep their original
        markup and are reported in ``errors``.
        """
        diagrams = self.extract_diagrams(content)
        if not diagrams:
            return PipelineResult(content=content)

        out_dir = Path(output_dir)
        ext = self.options.output_format
        semaphore = asyncio.Semaphore(self.render_concurrency)

        async def _render(index: int, diagram: DiagramMatch) -> RenderOutcome:
            async with semaphore:
                try:
                    return await self.renderer.render(
                        diagram.code, out_dir / _image_name(base_name, index, ext)
                    )
                except Exception as e:
                    logger.debug("Renderer raised for diagram %d", index, exc_info=True)
                    return RenderOutcome(ok=False, error=str(e) or type(e).__name__)

        # Blocks from different syntaxes can overlap; those cannot be spliced safely.
        overlapping = _overlapping_indexes(diagrams)
        tasks = [
            _render(index, diagram)
            for index, diagram in enumerate(diagrams, start=1)
            if index not in overlapping
        ]
        outcomes = iter(await asyncio.gather(*tasks))

        edits: list[tuple[DiagramMatch, str | None]] = []
        errors: list[str] = []
        for index, diagram in enumerate(diagrams, start=1):
            if index in overlapping:
                errors.append(
                    f"Diagram {index}: overlaps a previous diagram block, left unchanged"
                )
                continue
            outcome = next(outcomes)
            if outcome.ok:
                image_name = _image_name(base_name, index, ext)
                edits.append((diagram, f"![Diagram {index}](./{image_name})"))
            else:
                errors.append(f"Diagram {index}: {outcome.error}")
                edits.append((diagram, None))

        for err in errors:
            logger.warning("%s", err)

        return PipelineResult(
            content=splice_all(content, edits),
            diagram_count=len(diagrams),
            errors=errors,
        )

    def cleanup(self) -> None:
        self.renderer.cleanup()


def _image_name(base_name: str, index: int, ext: str) -> str:
    return f"{base_name}-diagram-{index}.{ext}"


def _overlapping_indexes(diagrams: list[DiagramMatch]) -> set[int]:
    """1-based indexes of diagrams starting inside an earlier kept diagram."""
    overlapping: set[int] = set()
    cursor = 0
    for index, diagram in enumerate(diagrams, start=1):
        if diagram.start < cursor:
            overlapping.add(index)
        else:
            cursor = diagram.end
    return overlapping
