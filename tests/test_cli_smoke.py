from __future__ import annotations

from pathlib import Path

import orjson
import pytest

from cli import main

GOOD = "def main():\n    helper()\n\n\ndef helper():\n    return 1\n"
BAD = "def helper():\n    return 1\n\n\ndef main():\n    helper()\n"


def _write_repo(root: Path) -> None:
    (root / "pkg").mkdir(parents=True, exist_ok=True)
    (root / "pkg" / "good.py").write_text(GOOD, encoding="utf-8")
    (root / "pkg" / "bad.py").write_text(BAD, encoding="utf-8")


def test_clean_file_exits_zero(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_repo(tmp_path)
    monkeypatch.chdir(tmp_path)

    exit_code = main(["pkg/good.py"])

    assert exit_code == 0
    assert capsys.readouterr().out == ""


def test_directory_with_error_exits_one(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_repo(tmp_path)
    monkeypatch.chdir(tmp_path)

    exit_code = main(["pkg", "--no-color"])

    assert exit_code == 1
    assert capsys.readouterr().out == (
        "pkg/bad.py:6:5: func reference helper is after definition\n"
    )


def test_verbose_prints_info_and_ok(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_repo(tmp_path)
    monkeypatch.chdir(tmp_path)

    exit_code = main(["pkg/good.py", "--verbose", "--no-color"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert (
        "pkg/good.py:2:5: func reference helper is before definition (pkg/good.py:5:5)"
        in out.splitlines()
    )


def test_color_output_uses_ansi_codes(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_repo(tmp_path)
    monkeypatch.chdir(tmp_path)

    exit_code = main(["pkg/bad.py", "--color"])

    assert exit_code == 1
    assert "\x1b[31m" in capsys.readouterr().out


def test_json_output(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_repo(tmp_path)
    monkeypatch.chdir(tmp_path)

    exit_code = main(["pkg", "--json"])

    payload = orjson.loads(capsys.readouterr().out)
    assert exit_code == 1
    assert payload["pkg/good.py"] == []
    assert payload["pkg/bad.py"] == [
        {
            "schema_version": 1,
            "path": "pkg/bad.py",
            "line": 6,
            "col": 5,
            "severity": "error",
            "message": "func reference helper is after definition",
        }
    ]


def test_config_file_sets_order(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _write_repo(tmp_path)
    (tmp_path / "refdir.toml").write_text('[order]\nfunc = "up"\n', encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    assert main(["pkg/bad.py"]) == 0
    assert main(["pkg/good.py"]) == 1


def test_flag_overrides_config_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _write_repo(tmp_path)
    (tmp_path / "refdir.toml").write_text('[order]\nfunc = "up"\n', encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    assert main(["pkg/bad.py", "--func-dir", "down"]) == 1
    assert main(["pkg/bad.py", "--func-dir", "ignore"]) == 0


def test_config_exclude_skips_files(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _write_repo(tmp_path)
    (tmp_path / "refdir.toml").write_text('exclude = ["bad.py"]\n', encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    assert main(["pkg"]) == 0


def test_invalid_direction_flag_exits_two(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_repo(tmp_path)
    monkeypatch.chdir(tmp_path)

    exit_code = main(["pkg", "--var-dir", "sideways"])

    assert exit_code == 2
    assert capsys.readouterr().err.startswith(
        "error: --var-dir: invalid direction 'sideways'"
    )


def test_invalid_config_exits_two(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_repo(tmp_path)
    (tmp_path / "refdir.toml").write_text("[order]\nmethod = 'up'\n", encoding="utf-8")

    exit_code = main([str(tmp_path / "pkg"), "--root", str(tmp_path)])

    assert exit_code == 2
    assert "Invalid config" in capsys.readouterr().err


def test_missing_path_exits_two(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = main([str(tmp_path / "nope.py"), "--root", str(tmp_path)])

    assert exit_code == 2
    assert "no such file or directory" in capsys.readouterr().err


def test_unresolvable_file_reported_and_run_continues(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_repo(tmp_path)
    deep = "x = " + " + ".join(["1"] * 3000) + "\n"
    (tmp_path / "pkg" / "deep.py").write_text(deep, encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    exit_code = main(["pkg", "--no-color"])

    captured = capsys.readouterr()
    assert exit_code == 1
    assert "pkg/deep.py: error: syntax tree nested too deeply to resolve" in captured.err
    assert "pkg/bad.py:6:5: func reference helper is after definition" in captured.out
