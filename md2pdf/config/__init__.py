from .loader import (
    CONFIG_FILE_NAMES,
    DEFAULT_CONFIG_TEMPLATE,
    find_config_file,
    load_config,
    merge_config,
    write_default_config,
)
from .models import (
    Md2PdfConfig,
    MermaidOptions,
    PageMargins,
    PdfOptions,
    PuppeteerConfig,
    StyleOptions,
)

__all__ = [
    "CONFIG_FILE_NAMES",
    "DEFAULT_CONFIG_TEMPLATE",
    "Md2PdfConfig",
    "MermaidOptions",
    "PageMargins",
    "PdfOptions",
    "PuppeteerConfig",
    "StyleOptions",
    "find_config_file",
    "load_config",
    "merge_config",
    "write_default_config",
]
