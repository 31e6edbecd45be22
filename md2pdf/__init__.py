"""md2pdf - convert Markdown with Mermaid diagrams to PDF."""

from md2pdf.config import Md2PdfConfig, load_config, merge_config
from md2pdf.converter import (
    BatchResult,
    ConversionResult,
    Converter,
    WatchSession,
    convert_markdown_to_pdf,
)
from md2pdf.diagrams import DiagramProcessor, DiagramRenderer, scan_diagrams
from md2pdf.pdf import PdfGenerator

__version__ = "1.0.0"

__all__ = [
    "BatchResult",
    "ConversionResult",
    "Converter",
    "DiagramProcessor",
    "DiagramRenderer",
    "Md2PdfConfig",
    "PdfGenerator",
    "WatchSession",
    "convert_markdown_to_pdf",
    "load_config",
    "merge_config",
    "scan_diagrams",
]
