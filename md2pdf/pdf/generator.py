"""Markdown -> HTML (markdown-it-py) -> PDF (Playwright Chromium)."""

from __future__ import annotations

import html
import logging
import tempfile
from functools import cached_property
from pathlib import Path
from typing import Any

from markdown_it import MarkdownIt
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright
from pydantic import BaseModel
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from md2pdf.config.models import PdfOptions, StyleOptions
from md2pdf.pdf.styles import DEFAULT_STYLES

logger = logging.getLogger(__name__)

_BROWSER_ARGS = ["--no-sandbox", "--disable-setuid-sandbox", "--disable-dev-shm-usage"]

_HTML_TEMPLATE = """\
<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
{css}
</style>
</head>
<body{body_attrs}>
{body}
</body>
</html>
"""


class GenerationResult(BaseModel):
    """Outcome of one PDF generation. ``content`` is set for in-memory output."""

    success: bool
    error: str | None = None
    content: bytes | None = None


class PdfGenerator:
    """Turns a markdown file or string into a PDF using the configured layout and styles."""

    def __init__(
        self,
        pdf_options: PdfOptions | None = None,
        style_options: StyleOptions | None = None,
    ) -> None:
        self.pdf_options = pdf_options or PdfOptions()
        self.style_options = style_options or StyleOptions()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate(
        self, markdown_path: str | Path, output_path: str | Path
    ) -> GenerationResult:
        """Generate *output_path* from the markdown file at *markdown_path*."""
        source = Path(markdown_path)
        try:
            content = source.read_text(encoding="utf-8")
        except OSError as e:
            return GenerationResult(success=False, error=f"Could not read {source}: {e}")
        return await self.generate_from_string(
            content, output_path, base_dir=source.parent, title=source.stem
        )

    async def generate_from_string(
        self,
        content: str,
        output_path: str | Path | None = None,
        base_dir: str | Path | None = None,
        title: str = "document",
    ) -> GenerationResult:
        """Generate a PDF from markdown text.

        Relative links resolve against *base_dir*. Without *output_path* the
        PDF bytes are returned in ``GenerationResult.content``.
        """
        try:
            page_html = self.render_html(content, title=title)
            pdf = await self._print_pdf(page_html, base_dir)
        except (PlaywrightError, OSError) as e:
            logger.debug("PDF generation failed", exc_info=True)
            return GenerationResult(success=False, error=str(e))

        if not pdf:
            return GenerationResult(success=False, error="PDF generation returned no content")

        if output_path is None:
            return GenerationResult(success=True, content=pdf)

        dest = Path(output_path)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(pdf)
        except OSError as e:
            return GenerationResult(success=False, error=f"Could not write {dest}: {e}")
        return GenerationResult(success=True)

    def render_html(self, content: str, title: str = "document") -> str:
        """Full standalone HTML page for *content*, stylesheet inlined."""
        body_attrs = ""
        if self.style_options.body_class:
            body_attrs = f' class="{html.escape(self.style_options.body_class, quote=True)}"'
        return _HTML_TEMPLATE.format(
            title=html.escape(title),
            css=self.load_stylesheet(),
            body_attrs=body_attrs,
            body=self._md.render(content),
        )

    def load_stylesheet(self) -> str:
        """Built-in styles, then highlight styles, then the CSS file, then inline CSS."""
        parts = [DEFAULT_STYLES, self._formatter.get_style_defs("pre code")]
        if self.style_options.css_file:
            css_path = Path(self.style_options.css_file)
            if css_path.is_file():
                parts.append(css_path.read_text(encoding="utf-8"))
            else:
                logger.warning("CSS file not found: %s", css_path)
        if self.style_options.css:
            parts.append(self.style_options.css)
        return "\n".join(parts)

    def pdf_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for Playwright's ``page.pdf``; unset options are omitted."""
        opts = self.pdf_options
        kwargs: dict[str, Any] = {
            "format": opts.format,
            "margin": opts.margin.model_dump(),
            "print_background": opts.print_background,
            "landscape": opts.landscape,
            "display_header_footer": opts.display_header_footer,
            "scale": opts.scale,
        }
        optional = {
            "header_template": opts.header_template,
            "footer_template": opts.footer_template,
            "width": opts.width,
            "height": opts.height,
            "page_ranges": opts.page_ranges,
            "prefer_css_page_size": opts.prefer_css_page_size,
        }
        kwargs.update({k: v for k, v in optional.items() if v is not None})
        return kwargs

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @cached_property
    def _formatter(self) -> HtmlFormatter:
        theme = self.style_options.highlight_theme
        try:
            get_style_by_name(theme)
        except ClassNotFound:
            logger.debug("No Pygments style named %r, using 'default'", theme)
            theme = "default"
        return HtmlFormatter(style=theme, nowrap=True)

    @cached_property
    def _md(self) -> MarkdownIt:
        return (
            MarkdownIt("commonmark", {"html": True, "highlight": self._highlight})
            .enable("table")
            .enable("strikethrough")
        )

    def _highlight(self, code: str, lang: str, attrs: str) -> str:
        if not lang:
            return ""
        try:
            lexer = get_lexer_by_name(lang)
        except ClassNotFound:
            return ""
        return highlight(code, lexer, self._formatter)

    async def _print_pdf(self, page_html: str, base_dir: str | Path | None) -> bytes:
        # The page is loaded from disk next to the markdown so relative images resolve.
        with tempfile.NamedTemporaryFile(
            "w",
            suffix=".html",
            prefix=".md2pdf-",
            dir=str(base_dir) if base_dir else None,
            delete=False,
            encoding="utf-8",
        ) as f:
            f.write(page_html)
            html_path = Path(f.name)

        try:
            async with async_playwright() as p:
                browser = await p.chromium.launch(headless=True, args=_BROWSER_ARGS)
                try:
                    page = await browser.new_page()
                    await page.goto(html_path.resolve().as_uri())
                    await page.wait_for_load_state("networkidle")
                    return await page.pdf(**self.pdf_kwargs())
                finally:
                    await browser.close()
        finally:
            html_path.unlink(missing_ok=True)
