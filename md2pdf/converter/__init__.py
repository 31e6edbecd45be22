"""Conversion orchestration: single files, batches, and watch mode."""

from md2pdf.converter.batch import BatchRunner
from md2pdf.converter.converter import Converter, convert_markdown_to_pdf, copy_local_assets
from md2pdf.converter.models import BatchResult, ConversionError, ConversionResult
from md2pdf.converter.paths import expand_patterns, output_path_for
from md2pdf.converter.watch import WatchSession

__all__ = [
    "BatchResult",
    "BatchRunner",
    "ConversionError",
    "ConversionResult",
    "Converter",
    "WatchSession",
    "convert_markdown_to_pdf",
    "copy_local_assets",
    "expand_patterns",
    "output_path_for",
]
