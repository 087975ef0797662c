"""Function-style shortcuts over Command, for one-off calls in build scripts."""

from collections.abc import Callable, Mapping

from buildsh.command import Command, Outcome, command


def _entries(env: Mapping[str, str] | None) -> tuple[str, ...]:
    if not env:
        return ()
    return tuple(f"{name}={value}" for name, value in env.items())


def execute(env: Mapping[str, str] | None, stdout, stderr, cmd: str, *args: str) -> Outcome:
    """Run ``cmd`` with explicit sinks and an env overlay; return the Outcome.

    ``cmd`` and ``args`` may reference $VARS, resolved against ``env`` first
    and the process environment second. A None sink discards that stream.
    """
    return Command(cmd, tuple(args), env=_entries(env), stdout=stdout, stderr=stderr).exec()


def run(cmd: str, *args: str) -> None:
    run_with(None, cmd, *args)


def run_v(cmd: str, *args: str) -> None:
    run_with_v(None, cmd, *args)


def run_with(env: Mapping[str, str] | None, cmd: str, *args: str) -> None:
    """Run with an env overlay; stdout shown only in verbose mode. Raises on failure."""
    command(cmd, *args).with_env(*_entries(env)).run()


def run_with_v(env: Mapping[str, str] | None, cmd: str, *args: str) -> None:
    command(cmd, *args).with_env(*_entries(env)).run_v()


def output(cmd: str, *args: str) -> str:
    return output_with(None, cmd, *args)


def output_with(env: Mapping[str, str] | None, cmd: str, *args: str) -> str:
    """Run with an env overlay and return stdout minus one trailing newline."""
    return command(cmd, *args).with_env(*_entries(env)).output()


def run_cmd(cmd: str, *args: str) -> Callable[..., None]:
    """Alias a command. Args given now come first; call-time args are appended.

        go_install = run_cmd("go", "install")
        go_install("./cmd/tool")
    """

    def runner(*more: str) -> None:
        run(cmd, *args, *more)

    return runner


def out_cmd(cmd: str, *args: str) -> Callable[..., str]:
    """Like run_cmd, but the alias returns the command's stdout."""

    def runner(*more: str) -> str:
        return output(cmd, *args, *more)

    return runner

