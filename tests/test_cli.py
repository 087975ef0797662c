"""Tests for cli.py: Click CLI commands."""

import os
import sys
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from buildsh.cli import main
from buildsh.settings import VERBOSE_ENV
from buildsh.tasks import TaskFileError

PY = sys.executable

TASK_FILE = """\
tasks:
  hello:
    cmd: ["$BUILDSH_PY", "-c", "import sys; print('hello', *sys.argv[1:])"]
    mode: output
    description: Say hello
  fail:
    cmd: ["$BUILDSH_PY", "-c", "import sys; sys.exit(int(sys.argv[1]))", "3"]
    mode: run_s
  greet:
    cmd: ["$BUILDSH_PY", "-c", "import os; print(os.environ['GREETING'])"]
    env: {GREETING: hey}
    mode: run_v
"""


@pytest.fixture
def task_dir(tmp_path, monkeypatch):
    monkeypatch.delenv("BUILDSH_FILE", raising=False)
    monkeypatch.setenv("BUILDSH_PY", PY)
    monkeypatch.chdir(tmp_path)
    (tmp_path / "buildsh.yml").write_text(TASK_FILE)
    return tmp_path


def test_run_success():
    runner = CliRunner()
    result = runner.invoke(main, ["run", PY, "-c", "pass"])
    assert result.exit_code == 0


def test_run_propagates_exit_code():
    runner = CliRunner()
    result = runner.invoke(main, ["run", "--mode", "run_s", PY, "-c", "import sys; sys.exit(7)"])
    assert result.exit_code == 7
    assert "failed with exit code 7" in result.output


def test_run_not_found():
    runner = CliRunner()
    result = runner.invoke(main, ["run", "buildsh-no-such-program"])
    assert result.exit_code == 1
    assert 'failed to run "buildsh-no-such-program"' in result.output


def test_run_output_mode_prints_capture():
    runner = CliRunner()
    result = runner.invoke(main, ["run", "--mode", "output", PY, "-c", "print('hi')"])
    assert result.exit_code == 0
    assert result.output == "hi\n"


def test_run_output_v_not_printed_twice():
    runner = CliRunner()
    result = runner.invoke(main, ["run", "--mode", "output_v", PY, "-c", "print('hi')"])
    assert result.exit_code == 0
    assert result.output.count("hi") == 1


def test_run_env_option():
    runner = CliRunner()
    code = "import os; print(os.environ['FOO'])"
    result = runner.invoke(main, ["run", "-e", "FOO=bar", "--mode", "output", PY, "-c", code])
    assert result.exit_code == 0
    assert result.output == "bar\n"


def test_run_env_option_invalid():
    runner = CliRunner()
    result = runner.invoke(main, ["run", "-e", "FOO", PY, "-c", "pass"])
    assert result.exit_code == 2


def test_run_dir_option(tmp_path):
    runner = CliRunner()
    code = "import os; print(os.getcwd())"
    result = runner.invoke(main, ["run", "-C", str(tmp_path), "--mode", "output", PY, "-c", code])
    assert result.exit_code == 0
    assert os.path.realpath(result.output.strip()) == os.path.realpath(tmp_path)


def test_run_child_options_not_parsed():
    runner = CliRunner()
    code = "import sys; print(sys.argv[1:])"
    result = runner.invoke(main, ["run", "--mode", "output", PY, "-c", code, "-e", "--mode"])
    assert result.exit_code == 0
    assert result.output == "['-e', '--mode']\n"


def test_verbose_flag(monkeypatch):
    monkeypatch.setenv(VERBOSE_ENV, "0")
    runner = CliRunner()
    result = runner.invoke(main, ["-v", "run", PY, "-c", "print('hi')"])
    assert result.exit_code == 0
    assert "Exec: " in result.output
    assert "hi\n" in result.output


def test_task_output(task_dir):
    runner = CliRunner()
    result = runner.invoke(main, ["task", "hello", "world"])
    assert result.exit_code == 0
    assert result.output == "hello world\n"


def test_task_exit_code(task_dir):
    runner = CliRunner()
    result = runner.invoke(main, ["task", "fail"])
    assert result.exit_code == 3


def test_task_env(task_dir):
    runner = CliRunner()
    result = runner.invoke(main, ["task", "greet"])
    assert result.exit_code == 0
    assert result.output == "hey\n"


def test_task_unknown(task_dir):
    runner = CliRunner()
    result = runner.invoke(main, ["task", "nope"])
    assert result.exit_code == 1
    assert "Unknown task: nope" in result.output


def test_task_file_missing(tmp_path, monkeypatch):
    monkeypatch.delenv("BUILDSH_FILE", raising=False)
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()
    result = runner.invoke(main, ["task", "hello"])
    assert result.exit_code == 1
    assert "task file not found" in result.output


def test_tasks_lists(task_dir):
    runner = CliRunner()
    result = runner.invoke(main, ["tasks"])
    assert result.exit_code == 0
    assert "hello (output)  Say hello" in result.output
    assert "fail (run_s)" in result.output
    assert "greet (run_v)" in result.output


@patch("buildsh.tasks.load_tasks")
def test_tasks_empty(mock_load):
    mock_load.return_value = []
    runner = CliRunner()
    result = runner.invoke(main, ["tasks"])
    assert result.exit_code == 0
    assert "No tasks defined" in result.output


@patch("buildsh.tasks.load_tasks")
def test_tasks_bad_file(mock_load):
    mock_load.side_effect = TaskFileError("invalid task file buildsh.yml")
    runner = CliRunner()
    result = runner.invoke(main, ["tasks"])
    assert result.exit_code == 1
    assert "invalid task file" in result.output


def test_version():
    runner = CliRunner()
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "buildsh" in result.output
    assert "0.1.0" in result.output


def test_help():
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "run" in result.output
    assert "task" in result.output
    assert "tasks" in result.output
