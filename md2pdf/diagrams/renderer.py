"""Render a single Mermaid diagram to an image with the Mermaid CLI (mmdc)."""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
import shlex
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import Any

from md2pdf.config.models import MermaidOptions

from .models import RenderOutcome

logger = logging.getLogger(__name__)

_MAX_ERROR_CHARS = 500


class DiagramRenderer:
    """Runs the external renderer for one document's diagrams.

    A temporary workspace is created on the first render and shared by every
    later call until ``cleanup()``. Each call writes its own uniquely named
    source and config files, so overlapping renders never collide.
    """

    def __init__(self, options: MermaidOptions | None = None) -> None:
        self.options = options or MermaidOptions()
        self._workspace: Path | None = None
        self._counter = itertools.count(1)

    @property
    def workspace(self) -> Path | None:
        """The current workspace directory, or None before the first render."""
        return self._workspace

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def render(self, code: str, output_path: str | Path) -> RenderOutcome:
        """Render *code* to *output_path*. Never raises for render failures."""
        output = Path(output_path)
        try:
            workspace = self._ensure_workspace()
            stem = self._unique_stem()
            input_path = workspace / f"{stem}.mmd"
            input_path.write_text(code, encoding="utf-8")
            mermaid_cfg, puppeteer_cfg = self._write_configs(workspace, stem)
            output.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return RenderOutcome(ok=False, error=f"Could not prepare render workspace: {e}")

        cmd = self.build_command(input_path, output, mermaid_cfg, puppeteer_cfg)
        logger.debug("Rendering diagram: %s", shlex.join(cmd))

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            return RenderOutcome(ok=False, error=f"Could not start renderer {cmd[0]!r}: {e}")

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(), timeout=self.options.timeout
            )
        except TimeoutError:
            await _kill(proc)
            return RenderOutcome(
                ok=False,
                error=f"Renderer timed out after {self.options.timeout:g}s",
            )

        if proc.returncode != 0:
            detail = (stderr or stdout or b"").decode(errors="replace").strip()
            return RenderOutcome(
                ok=False,
                error=f"Renderer exited with code {proc.returncode}: {detail[:_MAX_ERROR_CHARS]}",
            )

        if not output.is_file():
            return RenderOutcome(
                ok=False, error="Renderer succeeded but produced no output file"
            )

        return RenderOutcome(ok=True, image_path=output)

    def build_command(
        self,
        input_path: Path,
        output_path: Path,
        mermaid_config: Path,
        puppeteer_config: Path,
    ) -> list[str]:
        """Full argv for one mmdc invocation."""
        opts = self.options
        args = [
            "-i", str(input_path),
            "-o", str(output_path),
            "-c", str(mermaid_config),
            "-p", str(puppeteer_config),
            "-w", str(opts.width),
            "-b", opts.background_color,
        ]
        if opts.height is not None:
            args += ["-H", str(opts.height)]
        if opts.output_format == "svg":
            args += ["-e", "svg"]
        return [*opts.command, *args]

    def cleanup(self) -> None:
        """Remove the workspace. Safe to call repeatedly."""
        if self._workspace is None:
            return
        shutil.rmtree(self._workspace, ignore_errors=True)
        logger.debug("Removed render workspace %s", self._workspace)
        self._workspace = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_workspace(self) -> Path:
        if self._workspace is None:
            self._workspace = Path(tempfile.mkdtemp(prefix="md2pdf-mermaid-"))
            logger.debug("Created render workspace %s", self._workspace)
        return self._workspace

    def _unique_stem(self) -> str:
        # monotonic counter + random suffix; never wall-clock time alone
        return f"diagram-{next(self._counter)}-{uuid.uuid4().hex[:12]}"

    def _write_configs(self, workspace: Path, stem: str) -> tuple[Path, Path]:
        opts = self.options
        mermaid_cfg = workspace / f"{stem}.mermaid-config.json"
        mermaid_cfg.write_text(
            json.dumps(
                {"theme": opts.theme, "backgroundColor": opts.background_color},
                indent=2,
            ),
            encoding="utf-8",
        )

        puppeteer: dict[str, Any] = {
            "headless": opts.puppeteer_config.headless,
            "args": opts.puppeteer_config.args,
        }
        if opts.puppeteer_config.executable_path:
            puppeteer["executablePath"] = opts.puppeteer_config.executable_path
        puppeteer_cfg = workspace / f"{stem}.puppeteer-config.json"
        puppeteer_cfg.write_text(json.dumps(puppeteer, indent=2), encoding="utf-8")
        return mermaid_cfg, puppeteer_cfg


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await proc.wait()
