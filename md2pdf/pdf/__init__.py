"""PDF generation from processed markdown."""

from md2pdf.pdf.generator import GenerationResult, PdfGenerator
from md2pdf.pdf.styles import DEFAULT_STYLES

__all__ = ["DEFAULT_STYLES", "GenerationResult", "PdfGenerator"]
