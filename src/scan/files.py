"""Locate the Python files a refdir run checks."""

from __future__ import annotations

from fnmatch import fnmatch
from pathlib import Path
from typing import TYPE_CHECKING

from gitignore_parser import parse_gitignore  # type: ignore[import-untyped]

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator


def _within(path: Path, root: Path) -> bool:
    """Return True when ``path`` resolves to a location under ``root``."""
    try:
        path.resolve().relative_to(root.resolve())
    except (OSError, ValueError):
        return False
    return True


def _gitignore_paths(root: Path, *, nested: bool) -> list[Path]:
    """Return the .gitignore files that apply under ``root``.

    Symlinked files and files resolving outside ``root`` never apply.
    """
    candidates = [root / ".gitignore"]
    if nested:
        candidates.extend(root.rglob(".gitignore"))
    kept = {
        path
        for path in candidates
        if path.is_file() and not path.is_symlink() and _within(path, root)
    }
    return sorted(kept, key=lambda p: p.relative_to(root).as_posix())


def _ignore_matcher(root: Path, *, nested: bool) -> Callable[[str], bool]:
    matchers = [parse_gitignore(path) for path in _gitignore_paths(root, nested=nested)]

    def ignored(path_str: str) -> bool:
        for matcher in matchers:
            try:
                if matcher(path_str):
                    return True
            except ValueError:
                # Path lies outside that .gitignore's directory.
                continue
        return False

    return ignored


def _selected(
    rel_path: str,
    include_patterns: list[str] | None,
    exclude_patterns: list[str] | None,
) -> bool:
    if include_patterns and not any(fnmatch(rel_path, pat) for pat in include_patterns):
        return False
    return not any(fnmatch(rel_path, pat) for pat in exclude_patterns or ())


def find_python_files(
    directory: Path,
    *,
    include_patterns: list[str] | None = None,
    exclude_patterns: list[str] | None = None,
    nested_gitignore: bool = False,
) -> list[Path]:
    """Find the Python files under ``directory`` that refdir should check.

    Symlinks are skipped, .gitignore rules apply, and ``include_patterns`` /
    ``exclude_patterns`` are fnmatch globs against the path relative to
    ``directory``. The result is sorted by that relative path.
    """
    ignored = _ignore_matcher(directory, nested=nested_gitignore)
    found: dict[str, Path] = {}
    for path in directory.rglob("*.py"):
        if path.is_symlink() or not path.is_file() or not _within(path, directory):
            continue
        rel_path = path.relative_to(directory).as_posix()
        if ignored(str(path)) or not _selected(rel_path, include_patterns, exclude_patterns):
            continue
        found[rel_path] = path
    return [found[rel_path] for rel_path in sorted(found)]


def iter_targets(
    paths: Iterable[Path],
    *,
    include_patterns: list[str] | None = None,
    exclude_patterns: list[str] | None = None,
    nested_gitignore: bool = False,
) -> Iterator[Path]:
    """Expand command-line paths: files are kept as given, directories scanned.

    A file reached twice (directly, through a directory, or through a
    symlink) is yielded once, the first time.
    """
    seen: set[Path] = set()
    for target in paths:
        if target.is_dir():
            candidates = find_python_files(
                target,
                include_patterns=include_patterns,
                exclude_patterns=exclude_patterns,
                nested_gitignore=nested_gitignore,
            )
        else:
            candidates = [target]
        for candidate in candidates:
            key = candidate.resolve()
            if key in seen:
                continue
            seen.add(key)
            yield candidate


__all__ = ["find_python_files", "iter_targets"]
