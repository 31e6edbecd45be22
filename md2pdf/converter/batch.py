"""Batch conversion: glob expansion, dedup, grouped concurrency, fail-fast."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path

from md2pdf.converter.models import BatchResult, ConversionResult
from md2pdf.converter.paths import expand_patterns, output_path_for

logger = logging.getLogger(__name__)

ConvertFn = Callable[[Path, Path | None], Awaitable[ConversionResult]]


def _chunked(items: list[Path], size: int) -> list[list[Path]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


class BatchRunner:
    """Runs a conversion function over many files in fixed-size groups.

    A group starts only after the previous one has fully completed, which
    bounds parallelism at ``concurrency``. Without ``continue_on_error``,
    the first group containing a failure is the last one started.
    """

    def __init__(self, convert: ConvertFn, ignore: Sequence[str] = ()) -> None:
        self._convert = convert
        self.ignore = list(ignore)

    async def run(
        self,
        patterns: Sequence[str],
        output_dir: str | Path | None = None,
        concurrency: int = 3,
        continue_on_error: bool = False,
    ) -> BatchResult:
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")

        started = time.monotonic()
        files = expand_patterns(patterns, self.ignore)
        logger.info("Found %d file(s) to convert", len(files))

        result = BatchResult(total=len(files))
        for group in _chunked(files, concurrency):
            group_results = await asyncio.gather(
                *(self._convert_one(path, output_dir) for path in group)
            )
            for item in group_results:
                result.results.append(item)
                if item.success:
                    result.successful += 1
                else:
                    result.failed += 1

            if result.failed and not continue_on_error:
                break

        result.skipped = len(files) - len(result.results)
        if result.skipped:
            logger.warning(
                "Stopped after a failure; %d file(s) were not converted", result.skipped
            )
        result.total_duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "Batch complete: %d succeeded, %d failed (%dms)",
            result.successful,
            result.failed,
            result.total_duration_ms,
        )
        return result

    async def _convert_one(self, path: Path, output_dir: str | Path | None) -> ConversionResult:
        try:
            return await self._convert(path, output_path_for(path, output_dir))
        except Exception as e:
            logger.exception("Unexpected error converting %s", path)
            return ConversionResult(success=False, input_file=str(path), error=str(e))
