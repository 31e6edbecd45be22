"""Tests for md2pdf.converter.watch: debounce, shutdown and watch roots."""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import patch

import pytest

from md2pdf.converter.paths import compile_patterns, path_matches, watch_roots
from md2pdf.converter.watch import WatchSession


class Recorder:
    def __init__(self) -> None:
        self.calls: list[tuple[Path, float]] = []

    async def __call__(self, path: Path) -> None:
        self.calls.append((path, asyncio.get_running_loop().time()))


async def _wait_for(predicate, timeout: float = 5.0) -> bool:
    deadline = asyncio.get_running_loop().time() + timeout
    while asyncio.get_running_loop().time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(0.05)
    return predicate()


# ---------------------------------------------------------------------------
# Debounce
# ---------------------------------------------------------------------------


class TestDebounce:
    @pytest.mark.asyncio
    async def test_rapid_changes_collapse_to_one_call(self, tmp_path):
        recorder = Recorder()
        session = WatchSession([str(tmp_path / "*.md")], recorder, debounce_ms=100)
        path = tmp_path / "doc.md"
        loop = asyncio.get_running_loop()

        session.notify(path)
        await asyncio.sleep(0.05)
        session.notify(path)
        await asyncio.sleep(0.05)
        session.notify(path)
        last_notify = loop.time()

        await asyncio.sleep(0.3)
        await session.close()

        assert len(recorder.calls) == 1
        called_path, called_at = recorder.calls[0]
        assert called_path == path
        assert called_at - last_notify >= 0.09

    @pytest.mark.asyncio
    async def test_timers_are_per_file(self, tmp_path):
        recorder = Recorder()
        session = WatchSession([str(tmp_path / "*.md")], recorder, debounce_ms=50)

        session.notify(tmp_path / "a.md")
        session.notify(tmp_path / "b.md")
        assert session.pending == {tmp_path / "a.md", tmp_path / "b.md"}

        await asyncio.sleep(0.2)
        await session.close()

        assert sorted(p.name for p, _ in recorder.calls) == ["a.md", "b.md"]
        assert session.pending == set()

    @pytest.mark.asyncio
    async def test_callback_error_does_not_stop_session(self, tmp_path):
        seen: list[str] = []

        async def flaky(path: Path) -> None:
            seen.append(path.name)
            if path.name == "bad.md":
                raise RuntimeError("conversion blew up")

        session = WatchSession([str(tmp_path / "*.md")], flaky, debounce_ms=10)
        session.notify(tmp_path / "bad.md")
        await asyncio.sleep(0.1)
        session.notify(tmp_path / "good.md")
        await asyncio.sleep(0.1)
        await session.close()

        assert seen == ["bad.md", "good.md"]

    def test_negative_debounce_rejected(self):
        async def noop(path):
            pass

        with pytest.raises(ValueError):
            WatchSession(["*.md"], noop, debounce_ms=-1)


# ---------------------------------------------------------------------------
# Shutdown
# ---------------------------------------------------------------------------


class TestClose:
    @pytest.mark.asyncio
    async def test_close_cancels_pending_timers(self, tmp_path):
        recorder = Recorder()
        session = WatchSession([str(tmp_path / "*.md")], recorder, debounce_ms=100)
        session.notify(tmp_path / "doc.md")

        await session.close()
        await asyncio.sleep(0.25)

        assert session.closed
        assert recorder.calls == []

    @pytest.mark.asyncio
    async def test_notify_after_close_is_ignored(self, tmp_path):
        recorder = Recorder()
        session = WatchSession([str(tmp_path / "*.md")], recorder, debounce_ms=10)
        await session.close()

        session.notify(tmp_path / "doc.md")
        await asyncio.sleep(0.05)

        assert recorder.calls == []
        assert session.pending == set()

    @pytest.mark.asyncio
    async def test_queued_event_dropped_after_close(self, tmp_path):
        doc = tmp_path / "doc.md"
        doc.write_text("# doc\n")
        recorder = Recorder()
        session = WatchSession([str(tmp_path / "*.md")], recorder, debounce_ms=10).open()

        session.dispatch(str(doc))  # queued on the loop, not yet handled
        await session.close()
        await asyncio.sleep(0.1)

        assert recorder.calls == []

    @pytest.mark.asyncio
    async def test_close_waits_for_running_callback(self, tmp_path):
        finished = asyncio.Event()

        async def slow(path: Path) -> None:
            await asyncio.sleep(0.1)
            finished.set()

        session = WatchSession([str(tmp_path / "*.md")], slow, debounce_ms=0)
        session.notify(tmp_path / "doc.md")
        await asyncio.sleep(0.02)  # timer fired, callback in progress

        await session.close()
        assert finished.is_set()

    @pytest.mark.asyncio
    async def test_open_after_close_raises(self, tmp_path):
        recorder = Recorder()
        session = WatchSession([str(tmp_path / "*.md")], recorder)
        await session.close()
        with pytest.raises(RuntimeError, match="closed"):
            session.open()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, tmp_path):
        session = WatchSession([str(tmp_path / "*.md")], Recorder()).open()
        await session.close()
        await session.close()
        assert session.closed


# ---------------------------------------------------------------------------
# Matching and real filesystem events
# ---------------------------------------------------------------------------


class TestMatching:
    def test_matches_only_pattern_files(self, tmp_path):
        (tmp_path / "doc.md").write_text("x")
        (tmp_path / "doc.txt").write_text("x")
        session = WatchSession([str(tmp_path / "*.md")], Recorder())

        assert session.matches(tmp_path / "doc.md")
        assert not session.matches(tmp_path / "doc.txt")
        # decided from the path alone, so a file need not exist yet
        assert session.matches(tmp_path / "not-written-yet.md")

    def test_matches_respects_ignore(self, tmp_path):
        (tmp_path / "draft.md").write_text("x")
        session = WatchSession(
            [str(tmp_path / "*.md")], Recorder(), ignore=["*/draft.md"]
        )
        assert not session.matches(tmp_path / "draft.md")

    def test_watch_roots(self, tmp_path):
        (tmp_path / "docs").mkdir()
        (tmp_path / "docs" / "one.md").write_text("x")

        roots = dict(
            watch_roots(
                [
                    str(tmp_path / "docs" / "*.md"),
                    str(tmp_path / "**" / "*.md"),
                    str(tmp_path / "docs" / "one.md"),
                    str(tmp_path / "absent" / "*.md"),
                ]
            )
        )
        assert roots == {
            (tmp_path / "docs").resolve(): False,
            tmp_path.resolve(): True,
        }


class TestPathMatches:
    def test_single_level_glob(self, tmp_path):
        compiled = compile_patterns([str(tmp_path / "*.md")])
        assert path_matches(tmp_path / "a.md", compiled)
        assert not path_matches(tmp_path / "sub" / "a.md", compiled)
        assert not path_matches(tmp_path / "a.txt", compiled)

    def test_recursive_glob(self, tmp_path):
        compiled = compile_patterns([str(tmp_path / "**" / "*.md")])
        assert path_matches(tmp_path / "a.md", compiled)
        assert path_matches(tmp_path / "x" / "y" / "a.md", compiled)
        assert not path_matches(tmp_path.parent / "a.md", compiled)

    def test_hidden_names_skipped_like_glob(self, tmp_path):
        compiled = compile_patterns([str(tmp_path / "**" / "*.md")])
        assert not path_matches(tmp_path / ".#draft.md", compiled)
        assert not path_matches(tmp_path / ".cache" / "a.md", compiled)

    def test_plain_path(self, tmp_path):
        compiled = compile_patterns([str(tmp_path / "docs" / "one.md")])
        assert path_matches(tmp_path / "docs" / "one.md", compiled)
        assert not path_matches(tmp_path / "docs" / "two.md", compiled)

    def test_relative_pattern_anchored_at_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        compiled = compile_patterns(["docs/*.md"])
        assert path_matches(tmp_path.resolve() / "docs" / "a.md", compiled)

    def test_ignore(self, tmp_path):
        compiled = compile_patterns([str(tmp_path / "**" / "*.md")])
        nested = tmp_path / "node_modules" / "pkg" / "README.md"
        assert path_matches(nested, compiled)
        assert not path_matches(nested, compiled, ["**/node_modules/**"])

    @pytest.mark.asyncio
    async def test_event_does_not_scan_the_tree(self, tmp_path):
        """Handling one event must not glob or list directories on the loop."""
        for i in range(20):
            pkg = tmp_path / "node_modules" / f"pkg{i}"
            pkg.mkdir(parents=True)
            (pkg / "README.md").write_text("x")
        doc = tmp_path / "guide.md"
        doc.write_text("# guide")
        session = WatchSession(
            [str(tmp_path / "**" / "*.md")],
            Recorder(),
            debounce_ms=1000,
            ignore=["**/node_modules/**"],
        )

        with patch("glob.glob", side_effect=AssertionError("glob called")), patch(
            "os.scandir", side_effect=AssertionError("directory listed")
        ):
            for _ in range(5):
                session._on_event(doc)
            session._on_event(tmp_path / "node_modules" / "pkg3" / "README.md")

        assert session.pending == {doc.resolve()}
        await session.close()


class TestFilesystemEvents:
    @pytest.mark.asyncio
    async def test_change_on_disk_triggers_callback(self, tmp_path):
        recorder = Recorder()
        session = WatchSession([str(tmp_path / "*.md")], recorder, debounce_ms=100).open()
        try:
            await asyncio.sleep(0.2)
            (tmp_path / "notes.txt").write_text("ignored")
            (tmp_path / "live.md").write_text("# first\n")
            (tmp_path / "live.md").write_text("# second\n")

            assert await _wait_for(lambda: bool(recorder.calls))
        finally:
            await session.close()

        assert {p for p, _ in recorder.calls} == {(tmp_path / "live.md").resolve()}
