"""Click entry point: ad-hoc commands and named tasks."""

import os
import sys

import click

from buildsh import __version__, errors, log, settings, tasks
from buildsh.command import Command, command


def _validate_env(ctx, param, value):
    for entry in value:
        if "=" not in entry:
            raise click.BadParameter(f"{entry!r} is not NAME=VALUE")
    return value


def _already_shown(mode: str) -> bool:
    """Whether the mode itself echoed the child's stdout."""
    return mode == "output_v" or (mode == "output" and settings.verbose())


def _execute(cmd: Command, mode: str) -> None:
    """Run ``cmd`` in ``mode``; exit with the child's code if it fails."""
    try:
        result = getattr(cmd, mode)()
    except errors.CommandError as e:
        log.error(str(e))
        sys.exit(errors.exit_status(e))
    if result is not None and not _already_shown(mode):
        click.echo(result)


@click.group()
@click.version_option(version=__version__, prog_name="buildsh")
@click.option("-v", "--verbose", is_flag=True, help="Echo commands and their stdout")
def main(verbose):
    """Run build commands, passing child exit codes through."""
    if verbose:
        # Exported, so nested buildsh invocations inherit it.
        os.environ[settings.VERBOSE_ENV] = "1"


@main.command(
    name="run",
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
@click.option(
    "--mode", type=click.Choice(tasks.MODES), default="run", show_default=True,
    help="Output routing",
)
@click.option("-C", "--dir", "cwd", default=None, help="Working directory for the command")
@click.option("-e", "--env", multiple=True, callback=_validate_env, help="NAME=VALUE to add")
@click.argument("argv", nargs=-1, required=True, type=click.UNPROCESSED)
def run_cmd(mode, cwd, env, argv):
    """Run a single command."""
    cmd = command(argv[0], *argv[1:]).with_env(*env)
    if cwd:
        cmd = cmd.with_dir(cwd)
    _execute(cmd, mode)


@main.command(
    name="task",
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
@click.argument("name")
@click.argument("extra", nargs=-1, type=click.UNPROCESSED)
def task(name, extra):
    """Run a task from the task file; EXTRA args are appended."""
    try:
        defined = tasks.load_tasks()
    except tasks.TaskFileError as e:
        log.error(str(e))
        sys.exit(1)

    match = tasks.find_task(defined, name)
    if match is None:
        log.error(f"Unknown task: {name}")
        sys.exit(1)
    _execute(match.command(*extra), match.mode)


@main.command(name="tasks")
def list_tasks():
    """List the tasks in the task file."""
    try:
        defined = tasks.load_tasks()
    except tasks.TaskFileError as e:
        log.error(str(e))
        sys.exit(1)

    if not defined:
        log.info("No tasks defined")
        return
    for t in defined:
        line = f"  {t.name} ({t.mode})"
        if t.description:
            line += f"  {t.description}"
        log.info(line)


if __name__ == "__main__":
    main()
