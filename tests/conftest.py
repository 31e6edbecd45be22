"""Shared test fixtures for md2pdf."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

from md2pdf.config.models import Md2PdfConfig, MermaidOptions
from md2pdf.diagrams.models import RenderOutcome

# Stand-in for mmdc: same argv shape, writes a fake image to -o.
# Sources containing FAIL exit non-zero like a Mermaid syntax error.
_FAKE_MMDC = '''\
import json, pathlib, sys, time

args = sys.argv[1:]
mode = "__MODE__"
src = pathlib.Path(args[args.index("-i") + 1])
out = pathlib.Path(args[args.index("-o") + 1])
with open(pathlib.Path(__file__).with_suffix(".calls"), "a") as log:
    log.write(json.dumps(args) + "\\n")

if mode == "fail":
    print("Error: Parse error on line 1", file=sys.stderr)
    sys.exit(1)
if mode == "slow":
    time.sleep(30)
if mode == "noop":
    sys.exit(0)

code = src.read_text()
if "FAIL" in code:
    print("Syntax error in graph", file=sys.stderr)
    sys.exit(2)
out.write_bytes(b"\\x89PNG-fake\\n" + code.encode())
'''


SAMPLE_MARKDOWN = """\
# Architecture

Intro paragraph.

```mermaid
flowchart TD
    A --> B
```

Some text between diagrams.

:::mermaid
sequenceDiagram
    A->>B: Hello
:::

```python
print("not a diagram")
```

The end.
"""


@pytest.fixture
def fake_mmdc(tmp_path):
    """Factory returning an mmdc-compatible command for a given mode.

    Modes: ``ok`` (default), ``fail`` (exit 1), ``noop`` (exit 0, no output),
    ``slow`` (sleeps past any sane timeout).
    """

    def _make(mode: str = "ok") -> list[str]:
        script = tmp_path / f"fake_mmdc_{mode}.py"
        script.write_text(_FAKE_MMDC.replace("__MODE__", mode))
        return [sys.executable, str(script)]

    return _make


@pytest.fixture
def mermaid_options(fake_mmdc):
    return MermaidOptions(command=fake_mmdc(), timeout=20)


@pytest.fixture
def sample_config(mermaid_options):
    return Md2PdfConfig(mermaid=mermaid_options)


@pytest.fixture
def sample_markdown():
    return SAMPLE_MARKDOWN


class FakeRenderer:
    """In-process renderer: writes the image unless the code contains FAIL."""

    def __init__(self, delays: dict[str, float] | None = None) -> None:
        self.calls: list[tuple[str, Path]] = []
        self.cleaned = False
        self._delays = delays or {}

    async def render(self, code: str, output_path) -> RenderOutcome:
        output = Path(output_path)
        self.calls.append((code, output))
        delay = next((d for key, d in self._delays.items() if key in code), 0)
        if delay:
            await asyncio.sleep(delay)
        if "FAIL" in code:
            return RenderOutcome(ok=False, error="Syntax error in graph")
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(b"png")
        return RenderOutcome(ok=True, image_path=output)

    def cleanup(self) -> None:
        self.cleaned = True


@pytest.fixture
def fake_renderer():
    return FakeRenderer()


@pytest.fixture
def make_renderer():
    """Factory for FakeRenderer with per-diagram delays keyed by a code substring."""
    return FakeRenderer
