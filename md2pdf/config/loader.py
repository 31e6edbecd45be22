"""Config file discovery, YAML/JSON loading with env var expansion, and merging."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import Md2PdfConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_NAMES: tuple[str, ...] = (
    "md2pdf.config.yaml",
    "md2pdf.config.yml",
    "md2pdf.config.json",
    ".md2pdfrc",
    ".md2pdfrc.yaml",
    ".md2pdfrc.json",
)

DEFAULT_CONFIG_NAME = "md2pdf.config.yaml"

# Sub-objects merged key by key instead of replaced wholesale.
_NESTED_SECTIONS = ("pdf", "mermaid", "style")


def find_config_file(search_dir: str | Path | None = None) -> Path | None:
    """Walk upward from *search_dir* (default: cwd) looking for a config file."""
    current = Path(search_dir).resolve() if search_dir else Path.cwd().resolve()
    for directory in (current, *current.parents):
        for name in CONFIG_FILE_NAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None


def load_config(
    config_path: str | Path | None = None,
    search_dir: str | Path | None = None,
) -> Md2PdfConfig | None:
    """Load a config file.

    An explicit *config_path* must exist. Without one, the nearest config file
    above *search_dir* is used; returns None when there is none.
    """
    if config_path is not None:
        path = Path(config_path)
        if not path.is_file():
            raise ValueError(f"Config file not found: {path}")
    else:
        path = find_config_file(search_dir)
        if path is None:
            return None

    logger.debug("Loading config from %s", path)
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid config syntax in {path}: {e}") from e

    if raw is None:
        return Md2PdfConfig()
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid config in {path}: expected a mapping at top level")

    try:
        return Md2PdfConfig.model_validate(_expand_env_vars(raw))
    except ValidationError as e:
        raise ValueError(f"Invalid config in {path}: {format_validation_errors(e)}") from e


def merge_config(
    file_config: Md2PdfConfig | None,
    overrides: Md2PdfConfig | None = None,
) -> Md2PdfConfig:
    """Layer defaults < file config < overrides, field by field.

    Only fields explicitly set on a layer take part, so an override that sets
    ``pdf.margin.top`` leaves the file's other margins and PDF options alone.
    """
    merged: dict[str, Any] = {}
    for layer in (file_config, overrides):
        if layer is None:
            continue
        _merge_into(merged, layer.model_dump(exclude_unset=True))
    return Md2PdfConfig.model_validate(merged)


def _merge_into(target: dict[str, Any], layer: dict[str, Any], depth: int = 0) -> None:
    for key, value in layer.items():
        nested = depth == 0 and key in _NESTED_SECTIONS or depth == 1
        if nested and isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge_into(target[key], value, depth + 1)
        elif isinstance(value, dict):
            target[key] = dict(value)
        else:
            target[key] = value


def format_validation_errors(error: ValidationError) -> str:
    """Render pydantic errors as ``loc: message`` pairs joined by '; '."""
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


def write_default_config(directory: str | Path = ".", force: bool = False) -> Path:
    """Write DEFAULT_CONFIG_TEMPLATE into *directory*. Refuses to overwrite unless forced."""
    target = Path(directory) / DEFAULT_CONFIG_NAME
    if target.exists() and not force:
        raise FileExistsError(f"Config file already exists: {target}")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    return target


# Default YAML template for `md2pdf init`
DEFAULT_CONFIG_TEMPLATE = """\
# md2pdf.config.yaml

# PDF page layout
pdf:
  format: "A4"                 # A0-A6 | Letter | Legal | Tabloid | Ledger
  margin:
    top: "20mm"
    right: "15mm"
    bottom: "20mm"
    left: "15mm"
  printBackground: true
  landscape: false
  # displayHeaderFooter: true
  # footerTemplate: '<div style="font-size:9px;width:100%;text-align:center"><span class="pageNumber"></span></div>'
  # scale: 1                   # 0.1 - 2

# Mermaid diagram rendering
mermaid:
  theme: "default"             # default | forest | dark | neutral | base
  backgroundColor: "transparent"
  width: 800
  outputFormat: "png"          # png | svg
  # command: ["mmdc"]          # defaults to ["npx", "mmdc"]
  # timeout: 60                # seconds per diagram
  # renderConcurrency: 1       # diagrams rendered at once per document

# Styling
style:
  highlightTheme: "friendly"   # any Pygments style name
  # cssFile: "./pdf.css"

# Batch / watch
# outputDir: "./pdf"
# ignore: ["**/node_modules/**"]

# Logging
logLevel: "info"               # debug | info | warning | error
"""
