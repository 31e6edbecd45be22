"""Glob expansion and output path helpers shared by batch and watch mode."""

from __future__ import annotations

import glob
import logging
import os
from collections.abc import Iterable, Sequence
from fnmatch import fnmatch, fnmatchcase
from pathlib import Path

logger = logging.getLogger(__name__)

_GLOB_CHARS = ("*", "?", "[")


def default_output_path(source: Path) -> Path:
    """``notes/guide.md`` -> ``notes/guide.pdf``."""
    return source.with_suffix(".pdf")


def output_path_for(source: Path, output_dir: str | Path | None) -> Path | None:
    """Target path inside *output_dir*, or None to write next to the source."""
    if output_dir is None:
        return None
    return Path(output_dir) / f"{source.stem}.pdf"


def expand_patterns(patterns: Iterable[str], ignore: Sequence[str] = ()) -> list[Path]:
    """Resolve glob *patterns* to unique absolute file paths, first-seen order.

    ``**`` matches across directories. A file listed by several patterns
    appears once.
    """
    seen: dict[Path, None] = {}
    for pattern in patterns:
        for match in sorted(glob.glob(os.path.expanduser(pattern), recursive=True)):
            path = Path(match).resolve()
            if not path.is_file() or is_ignored(path, ignore):
                continue
            seen.setdefault(path, None)
    return list(seen)


def is_ignored(path: Path, ignore: Sequence[str]) -> bool:
    """True if *path* (absolute, or relative to cwd) matches an ignore glob."""
    if not ignore:
        return False
    candidates = [path.as_posix()]
    try:
        candidates.append(path.relative_to(Path.cwd()).as_posix())
    except ValueError:
        pass
    return any(fnmatch(c, pat) for c in candidates for pat in ignore)


def _split_pattern(pattern: str) -> tuple[list[str], list[str]]:
    """Leading literal path parts and the glob parts that follow."""
    parts = list(Path(os.path.expanduser(pattern)).parts)
    for i, part in enumerate(parts):
        if any(ch in part for ch in _GLOB_CHARS):
            return parts[:i], parts[i:]
    return parts, []


def compile_patterns(patterns: Iterable[str]) -> list[tuple[Path, tuple[str, ...]]]:
    """Pre-resolve each pattern into an absolute base and its glob parts.

    The result feeds `path_matches`, which then tests single paths without
    touching the disk.
    """
    compiled = []
    for pattern in patterns:
        base, globbed = _split_pattern(pattern)
        root = Path(*base).resolve() if base else Path.cwd().resolve()
        compiled.append((root, tuple(globbed)))
    return compiled


def path_matches(
    path: Path,
    compiled: Sequence[tuple[Path, tuple[str, ...]]],
    ignore: Sequence[str] = (),
) -> bool:
    """True if absolute *path* matches a compiled pattern and no ignore glob."""
    for root, globbed in compiled:
        if not globbed:
            hit = path == root
        else:
            try:
                rel = path.relative_to(root).parts
            except ValueError:
                continue
            hit = _match_parts(rel, globbed)
        if hit:
            return not is_ignored(path, ignore)
    return False


def _match_parts(parts: Sequence[str], globbed: Sequence[str]) -> bool:
    # Same rules as glob(recursive=True): `**` spans zero or more directories,
    # and wildcards never match a leading dot.
    if not globbed:
        return not parts
    head, rest = globbed[0], globbed[1:]
    if head == "**":
        for i in range(len(parts) + 1):
            if _match_parts(parts[i:], rest):
                return True
            if i < len(parts) and parts[i].startswith("."):
                return False
        return False
    if not parts or (parts[0].startswith(".") and not head.startswith(".")):
        return False
    return fnmatchcase(parts[0], head) and _match_parts(parts[1:], rest)


def watch_roots(patterns: Iterable[str]) -> list[tuple[Path, bool]]:
    """Directories to observe for *patterns*, with a recursive flag each.

    The root is the longest leading part of the pattern without glob
    characters; recursion is needed when the glob spans more than one level.
    """
    roots: dict[Path, bool] = {}
    for pattern in patterns:
        base, globbed = _split_pattern(pattern)
        glob_depth = len(globbed)
        if glob_depth == 0:
            directory = Path(*base).parent
            recursive = False
        else:
            directory = Path(*base) if base else Path(".")
            recursive = glob_depth > 1

        directory = directory.resolve()
        if not directory.is_dir():
            logger.warning("Not watching %s: directory does not exist", directory)
            continue
        roots[directory] = roots.get(directory, False) or recursive
    return list(roots.items())
