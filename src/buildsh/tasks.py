"""Parse the YAML task file into Task objects."""

import shlex
from dataclasses import dataclass, field

import yaml

from buildsh import settings
from buildsh.command import Command, command

MODES = ("run", "run_v", "run_e", "run_s", "output", "output_v", "output_e", "output_s")


class TaskFileError(Exception):
    """The task file is missing or malformed."""


@dataclass
class Task:
    name: str
    cmd: list[str]
    env: list[str] = field(default_factory=list)
    dir: str | None = None
    mode: str = "run"
    description: str = ""

    def command(self, *extra: str) -> Command:
        """Build the task's Command, with ``extra`` appended to its args."""
        c = command(self.cmd[0], *self.cmd[1:]).with_args(*extra).with_env(*self.env)
        if self.dir:
            c = c.with_dir(self.dir)
        return c


def _parse_cmd(name: str, raw) -> list[str]:
    if isinstance(raw, str):
        cmd = shlex.split(raw)
    elif isinstance(raw, list):
        cmd = [str(part) for part in raw]
    else:
        cmd = []
    if not cmd:
        raise TaskFileError(f"task {name!r}: 'cmd' must be a non-empty list or string")
    return cmd


def _parse_env(name: str, raw) -> list[str]:
    """Accept {NAME: value} or ["NAME=value", ...]."""
    if raw is None:
        return []
    if isinstance(raw, dict):
        return [f"{k}={'' if v is None else v}" for k, v in raw.items()]
    if isinstance(raw, list):
        entries = [str(item) for item in raw]
        bad = [e for e in entries if "=" not in e]
        if bad:
            raise TaskFileError(f"task {name!r}: env entries must be NAME=value, got {bad[0]!r}")
        return entries
    raise TaskFileError(f"task {name!r}: 'env' must be a mapping or a list")


def parse_tasks(doc: dict | None) -> list[Task]:
    """Parse a task-file dict into Tasks, in file order."""
    if doc is None:
        return []
    if not isinstance(doc, dict):
        raise TaskFileError("task file must be a mapping with a 'tasks' key")
    tasks_dict = doc.get("tasks") or {}
    if not isinstance(tasks_dict, dict):
        raise TaskFileError("'tasks' must be a mapping of name to task")

    tasks = []
    for name, spec in tasks_dict.items():
        # Shorthand: `name: cmd args...`
        if isinstance(spec, (str, list)):
            spec = {"cmd": spec}
        if not isinstance(spec, dict):
            raise TaskFileError(f"task {name!r}: expected a mapping")

        mode = spec.get("mode", "run")
        if mode not in MODES:
            raise TaskFileError(f"task {name!r}: unknown mode {mode!r}")

        tasks.append(
            Task(
                name=str(name),
                cmd=_parse_cmd(name, spec.get("cmd")),
                env=_parse_env(name, spec.get("env")),
                dir=spec.get("dir"),
                mode=mode,
                description=spec.get("description", ""),
            )
        )
    return tasks


def load_tasks(path: str | None = None) -> list[Task]:
    """Read and parse the task file (BUILDSH_FILE, default buildsh.yml)."""
    path = path or settings.task_file()
    try:
        with open(path) as f:
            doc = yaml.safe_load(f)
    except FileNotFoundError:
        raise TaskFileError(f"task file not found: {path}") from None
    except yaml.YAMLError as e:
        raise TaskFileError(f"invalid task file {path}: {e}") from e
    return parse_tasks(doc)


def find_task(tasks: list[Task], name: str) -> Task | None:
    for task in tasks:
        if task.name == name:
            return task
    return None
