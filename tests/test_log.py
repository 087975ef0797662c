"""Tests for log.py: timestamped output + GA annotations."""

import re

from buildsh import log


def test_info(capsys):
    log.info("test message")
    out = capsys.readouterr().out
    assert re.match(r"\[\d{2}:\d{2}:\d{2}\] test message\n", out)


def test_step(capsys):
    log.step("building...")
    assert "  building..." in capsys.readouterr().out


def test_success(capsys):
    log.success("built")
    assert "✓ built" in capsys.readouterr().out


def test_command_line_goes_to_stderr(capsys):
    log.command_line("go", ["test", "./..."])
    captured = capsys.readouterr()
    assert captured.out == ""
    assert re.match(r"\[\d{2}:\d{2}:\d{2}\] Exec: go test \./\.\.\.\n", captured.err)


def test_warning(capsys):
    log.warning("careful")
    assert "WARNING: careful" in capsys.readouterr().err


def test_error(capsys):
    log.error("something broke")
    err = capsys.readouterr().err
    assert "ERROR: something broke" in err


def test_github_actions_error(capsys, monkeypatch):
    monkeypatch.setenv("GITHUB_ACTIONS", "true")
    log.error("build failed")
    assert "::error::build failed" in capsys.readouterr().out


def test_github_actions_warning(capsys, monkeypatch):
    monkeypatch.setenv("GITHUB_ACTIONS", "true")
    log.warning("flaky")
    assert "::warning::flaky" in capsys.readouterr().out


def test_no_annotations_outside_actions(capsys):
    log.error("quiet")
    assert "::error::" not in capsys.readouterr().out
