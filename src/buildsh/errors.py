"""Command failures and exit-status extraction."""

import subprocess


class CommandError(Exception):
    """A command could not be run or did not succeed.

    ``output`` holds the captured stdout for the ``output*`` variants.
    """

    def __init__(self, message: str, command: str = "", output: str | None = None):
        super().__init__(message)
        self.command = command
        self.output = output


class LaunchError(CommandError):
    """The process never started: not found, not executable, bad cwd..."""

    def __init__(self, command: str, cause: BaseException):
        super().__init__(f'failed to run "{command}": {cause}', command=command)
        self.cause = cause


class ExitError(CommandError):
    """The process ran and exited non-zero. Carries the exit code."""

    def __init__(self, message: str, code: int, command: str = ""):
        super().__init__(message, command=command)
        self.code = code

    def exit_status(self) -> int:
        return self.code


def fatal(code: int, message: str) -> ExitError:
    """Build an error that makes the driver exit with ``code``."""
    return ExitError(message, code)


def exited(command: str, code: int) -> ExitError:
    return ExitError(f'running "{command}" failed with exit code {code}', code, command=command)


def exit_status(err: BaseException | None) -> int:
    """Exit status carried by ``err``.

    0 for no error, the error's own ``exit_status()`` when it has one, the
    return code of a CalledProcessError, otherwise 1.
    """
    if err is None:
        return 0
    status = getattr(err, "exit_status", None)
    if callable(status):
        return status()
    if isinstance(err, subprocess.CalledProcessError):
        return err.returncode
    return 1
