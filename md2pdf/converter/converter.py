"""Single-file markdown -> PDF conversion with Mermaid diagram rendering."""

from __future__ import annotations

import asyncio
import logging
import re
import shutil
import tempfile
import time
from collections.abc import Sequence
from pathlib import Path
from urllib.parse import unquote

from md2pdf.config.models import Md2PdfConfig
from md2pdf.converter.batch import BatchRunner
from md2pdf.converter.models import BatchResult, ConversionError, ConversionResult
from md2pdf.converter.paths import default_output_path, output_path_for
from md2pdf.converter.watch import WatchSession
from md2pdf.diagrams import DiagramProcessor
from md2pdf.pdf import PdfGenerator

logger = logging.getLogger(__name__)

_IMAGE_REF = re.compile(r"!\[[^\]]*\]\(([^)]+)\)")
_REMOTE_PREFIXES = ("http://", "https://", "data:", "//")


def copy_local_assets(content: str, source_dir: Path, target_dir: Path) -> list[Path]:
    """Copy relatively referenced images next to the processed document.

    URLs, data URIs and absolute paths are left alone. Each image keeps its
    relative location so the original links still resolve from *target_dir*.
    Returns the copied destination paths.
    """
    copied: list[Path] = []
    target_root = target_dir.resolve()
    for match in _IMAGE_REF.finditer(content):
        ref = _link_target(match.group(1))
        if not ref or ref.startswith(_REMOTE_PREFIXES) or Path(ref).is_absolute():
            continue

        src = (source_dir / ref).resolve()
        dest = (target_dir / ref).resolve()
        if not dest.is_relative_to(target_root):
            logger.debug("Skipping asset outside the document tree: %s", ref)
            continue
        if not src.is_file():
            logger.debug("Asset not found: %s", src)
            continue

        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dest)
        copied.append(dest)
        logger.debug("Copied asset: %s", ref)
    return copied


def _link_target(raw: str) -> str:
    # ![alt](path "title") and ![alt](<path with spaces>)
    raw = raw.strip()
    if raw.startswith("<") and ">" in raw:
        return unquote(raw[1 : raw.index(">")])
    return unquote(raw.split()[0]) if raw else ""


class Converter:
    """Converts markdown files to PDF, rendering Mermaid diagrams on the way.

    Every ``convert`` call gets its own diagram processor and working
    directory, so concurrent conversions never share intermediate files.
    """

    def __init__(self, config: Md2PdfConfig | None = None) -> None:
        self.config = config or Md2PdfConfig()
        self.pdf_generator = PdfGenerator(self.config.pdf, self.config.style)

    def create_processor(self) -> DiagramProcessor:
        return DiagramProcessor(
            self.config.mermaid,
            render_concurrency=self.config.mermaid.render_concurrency,
        )

    # ------------------------------------------------------------------
    # Single file
    # ------------------------------------------------------------------

    async def convert(
        self,
        input_path: str | Path,
        output_path: str | Path | None = None,
    ) -> ConversionResult:
        """Convert one markdown file. Failures are returned, never raised."""
        started = time.monotonic()
        source = Path(input_path).resolve()
        dest = Path(output_path).resolve() if output_path else default_output_path(source)

        logger.info("Converting: %s", source.name)
        processor = self.create_processor()
        workdir: Path | None = None
        try:
            if not source.is_file():
                raise ConversionError(f"Input file not found: {source}")

            content = await asyncio.to_thread(source.read_text, encoding="utf-8")
            workdir = Path(tempfile.mkdtemp(prefix="md2pdf-"))

            logger.debug("Processing Mermaid diagrams...")
            processed = await processor.process_markdown(content, workdir, source.stem)
            if processed.errors:
                logger.warning(
                    "Diagram warnings in %s: %s", source.name, "; ".join(processed.errors)
                )
            logger.info("Processed %d diagram(s)", processed.diagram_count)

            processed_path = workdir / source.name
            await asyncio.to_thread(
                processed_path.write_text, processed.content, encoding="utf-8"
            )
            await asyncio.to_thread(copy_local_assets, content, source.parent, workdir)

            logger.debug("Generating PDF...")
            generated = await self.pdf_generator.generate(processed_path, dest)
            if not generated.success:
                raise ConversionError(generated.error or "PDF generation failed")

            duration = _elapsed_ms(started)
            logger.info("Created: %s (%dms)", dest.name, duration)
            return ConversionResult(
                success=True,
                input_file=str(source),
                output_file=str(dest),
                duration_ms=duration,
                diagram_count=processed.diagram_count,
                diagram_errors=processed.errors,
            )
        except (ConversionError, OSError, UnicodeDecodeError) as e:
            logger.error("Failed to convert %s: %s", source.name, e)
            return ConversionResult(
                success=False,
                input_file=str(source),
                error=str(e),
                duration_ms=_elapsed_ms(started),
            )
        finally:
            processor.cleanup()
            if workdir is not None:
                if self.config.keep_intermediate:
                    logger.info("Intermediate files kept at: %s", workdir)
                else:
                    shutil.rmtree(workdir, ignore_errors=True)

    # ------------------------------------------------------------------
    # Many files
    # ------------------------------------------------------------------

    async def batch_convert(
        self,
        patterns: Sequence[str],
        output_dir: str | Path | None = None,
        concurrency: int = 3,
        continue_on_error: bool = False,
    ) -> BatchResult:
        """Convert every file matched by *patterns*, *concurrency* files at a time."""
        runner = BatchRunner(self.convert, ignore=self.config.ignore)
        return await runner.run(
            patterns,
            output_dir=output_dir if output_dir is not None else self.config.output_dir,
            concurrency=concurrency,
            continue_on_error=continue_on_error,
        )

    def watch(
        self,
        patterns: Sequence[str],
        output_dir: str | Path | None = None,
        debounce_ms: int = 500,
    ) -> WatchSession:
        """Start watching *patterns*; must be called from a running event loop.

        Returns the open session; ``await session.close()`` to stop.
        """
        target_dir = output_dir if output_dir is not None else self.config.output_dir

        async def _on_change(path: Path) -> None:
            await self.convert(path, output_path_for(path, target_dir))

        session = WatchSession(
            patterns, _on_change, debounce_ms=debounce_ms, ignore=self.config.ignore
        )
        return session.open()


async def convert_markdown_to_pdf(
    input_path: str | Path,
    output_path: str | Path | None = None,
    config: Md2PdfConfig | None = None,
) -> ConversionResult:
    """One-shot conversion of a single file."""
    return await Converter(config).convert(input_path, output_path)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
