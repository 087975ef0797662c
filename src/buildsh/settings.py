"""Environment-driven settings. Read on every call, never cached."""

import os

from buildsh import log

VERBOSE_ENV = "BUILDSH_VERBOSE"
TASK_FILE_ENV = "BUILDSH_FILE"
DEFAULT_TASK_FILE = "buildsh.yml"

_TRUE = {"1", "t", "T", "true", "TRUE", "True"}
_FALSE = {"0", "f", "F", "false", "FALSE", "False"}

_warned: set[str] = set()


def parse_bool(value: str) -> bool:
    """Parse a boolean flag value. Raises ValueError for anything unrecognized."""
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"invalid boolean value {value!r}")


def verbose() -> bool:
    """Whether verbose mode is on for this process."""
    value = os.environ.get(VERBOSE_ENV)
    if not value:
        return False
    try:
        return parse_bool(value)
    except ValueError:
        if value not in _warned:
            _warned.add(value)
            log.warning(f"ignoring {VERBOSE_ENV}={value!r}: not a boolean")
        return False


def task_file() -> str:
    """Path of the task file: BUILDSH_FILE env, else buildsh.yml in the cwd."""
    return os.environ.get(TASK_FILE_ENV) or DEFAULT_TASK_FILE
