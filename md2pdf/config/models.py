"""Pydantic models for md2pdf configuration.

Keys are accepted in camelCase (``printBackground``) or snake_case
(``print_background``) so config files written for the Node tool keep working.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

PdfFormat = Literal[
    "A0", "A1", "A2", "A3", "A4", "A5", "A6",
    "Letter", "Legal", "Tabloid", "Ledger",
]
MermaidTheme = Literal["default", "forest", "dark", "neutral", "base"]


class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class PageMargins(_ConfigModel):
    top: str = "20mm"
    right: str = "15mm"
    bottom: str = "20mm"
    left: str = "15mm"


class PdfOptions(_ConfigModel):
    format: PdfFormat = "A4"
    margin: PageMargins = Field(default_factory=PageMargins)
    print_background: bool = True
    landscape: bool = False
    header_template: str | None = None
    footer_template: str | None = None
    display_header_footer: bool = False
    scale: float = Field(default=1.0, ge=0.1, le=2)
    width: str | None = None
    height: str | None = None
    page_ranges: str | None = None
    prefer_css_page_size: bool | None = Field(default=None, alias="preferCSSPageSize")


class PuppeteerConfig(_ConfigModel):
    headless: bool | Literal["new", "shell"] = "new"
    args: list[str] = Field(
        default_factory=lambda: ["--no-sandbox", "--disable-setuid-sandbox"]
    )
    executable_path: str | None = None


class MermaidOptions(_ConfigModel):
    theme: MermaidTheme = "default"
    background_color: str = "transparent"
    width: int = Field(default=800, gt=0)
    height: int | None = Field(default=None, gt=0)
    output_format: Literal["png", "svg"] = "png"
    puppeteer_config: PuppeteerConfig = Field(default_factory=PuppeteerConfig)
    command: list[str] = Field(default_factory=lambda: ["npx", "mmdc"], min_length=1)
    timeout: float = Field(default=60.0, gt=0)
    render_concurrency: int = Field(default=1, ge=1)


class StyleOptions(_ConfigModel):
    css_file: str | None = None
    css: str | None = None
    highlight_theme: str = "friendly"
    body_class: str | None = None


class Md2PdfConfig(_ConfigModel):
    """Top-level config: the shape of a config file and of merged options."""

    pdf: PdfOptions = Field(default_factory=PdfOptions)
    mermaid: MermaidOptions = Field(default_factory=MermaidOptions)
    style: StyleOptions = Field(default_factory=StyleOptions)
    output_dir: str | None = None
    ignore: list[str] = Field(default_factory=list)
    keep_intermediate: bool = False
    log_level: Literal["debug", "info", "warning", "error"] = "info"
