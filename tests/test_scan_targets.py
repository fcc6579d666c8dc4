from __future__ import annotations

from typing import TYPE_CHECKING

from scan.files import find_python_files, iter_targets

if TYPE_CHECKING:
    from pathlib import Path


def _write(path: Path, text: str = "x = 1\n") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_find_python_files_sorted_and_gitignored(tmp_path: Path) -> None:
    _write(tmp_path / "b.py")
    _write(tmp_path / "a" / "z.py")
    _write(tmp_path / "build" / "gen.py")
    _write(tmp_path / "notes.txt")
    (tmp_path / ".gitignore").write_text("build/\n", encoding="utf-8")

    results = [p.relative_to(tmp_path).as_posix() for p in find_python_files(tmp_path)]

    assert results == ["a/z.py", "b.py"]


def test_find_python_files_include_and_exclude(tmp_path: Path) -> None:
    _write(tmp_path / "src" / "mod.py")
    _write(tmp_path / "src" / "mod_test.py")
    _write(tmp_path / "tools" / "run.py")

    results = [
        p.relative_to(tmp_path).as_posix()
        for p in find_python_files(
            tmp_path,
            include_patterns=["src/*"],
            exclude_patterns=["*_test.py"],
        )
    ]

    assert results == ["src/mod.py"]


def test_iter_targets_keeps_files_and_dedupes(tmp_path: Path) -> None:
    _write(tmp_path / "pkg" / "one.py")
    _write(tmp_path / "pkg" / "two.py")
    _write(tmp_path / "script.txt")

    targets = list(
        iter_targets(
            [tmp_path / "pkg" / "two.py", tmp_path / "pkg", tmp_path / "script.txt"]
        )
    )

    assert [t.relative_to(tmp_path).as_posix() for t in targets] == [
        "pkg/two.py",
        "pkg/one.py",
        "script.txt",
    ]
