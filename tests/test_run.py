"""Tests for scripts/run.py"""

import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "scripts"))

from run import COMMANDS, PARAM_COMMANDS, SCRIPTS_DIR, build_args, run_command, show_help


# --- Command tables ---


def test_every_script_exists():
    for cmd, (script, _, _) in {**COMMANDS, **PARAM_COMMANDS}.items():
        assert (SCRIPTS_DIR / script).exists(), f"{cmd} -> missing {script}"


def test_no_word_in_both_tables():
    assert not set(COMMANDS) & set(PARAM_COMMANDS)


# --- build_args ---


def test_build_args_standalone():
    args = build_args("targets")
    assert args[0] == sys.executable
    assert args[1].endswith("funnel_report.py")
    assert args[2:] == ["--targets"]


def test_build_args_param_appends_target():
    args = build_args("load", "exports/jobs.json")
    assert args[1].endswith("analytics.py")
    assert args[2:] == ["--records", "exports/jobs.json"]


def test_build_args_export_writes_csv_file():
    assert build_args("export", "out.csv")[2:] == ["--export", "csv", "--output", "out.csv"]


def test_build_args_missing_target():
    with pytest.raises(ValueError, match="requires an argument"):
        build_args("interviews")


def test_build_args_unknown():
    with pytest.raises(KeyError):
        build_args("launch")


def test_build_args_standalone_with_target_is_unknown():
    with pytest.raises(KeyError):
        build_args("funnel", "extra")


# --- run_command ---


@patch("run.subprocess.run")
def test_run_command_exits_with_script_code(mock_run):
    mock_run.return_value = MagicMock(returncode=3)
    with pytest.raises(SystemExit) as exc:
        run_command("velocity")
    assert exc.value.code == 3
    mock_run.assert_called_once_with(build_args("velocity"))


@patch("run.subprocess.run")
def test_run_command_unknown(mock_run, capsys):
    with pytest.raises(SystemExit) as exc:
        run_command("launch")
    assert exc.value.code == 1
    assert "Unknown command" in capsys.readouterr().err
    mock_run.assert_not_called()


@patch("run.subprocess.run")
def test_run_command_missing_target(mock_run, capsys):
    with pytest.raises(SystemExit) as exc:
        run_command("goal")
    assert exc.value.code == 1
    assert "requires an argument" in capsys.readouterr().err
    mock_run.assert_not_called()


def test_show_help_lists_commands(capsys):
    show_help()
    out = capsys.readouterr().out
    for cmd in list(COMMANDS) + list(PARAM_COMMANDS):
        assert cmd in out


# --- Packaging ---


def test_install_adds_no_top_level_modules():
    tomllib = pytest.importorskip("tomllib")
    with open(SCRIPTS_DIR.parent / "pyproject.toml", "rb") as f:
        setuptools_cfg = tomllib.load(f)["tool"]["setuptools"]
    assert setuptools_cfg["py-modules"] == []
    assert setuptools_cfg["packages"] == []
    assert "package-dir" not in setuptools_cfg
