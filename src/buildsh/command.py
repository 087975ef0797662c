"""Chainable command builder + the execution engine behind it."""

import codecs
import dataclasses
import enum
import io
import os
import re
import subprocess
import sys
import threading
from dataclasses import dataclass
from functools import partial

from buildsh import errors, log, settings

CHUNK_SIZE = 64 * 1024

_VAR = re.compile(r"\$(?:\{([^}]*)\}|([A-Za-z0-9_]+))")


class _ParentStream:
    """The caller's sys.stdout / sys.stderr, looked up when the command runs."""

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return f"<parent {self.name}>"

    def resolve(self):
        return getattr(sys, self.name)


PARENT_STDOUT = _ParentStream("stdout")
PARENT_STDERR = _ParentStream("stderr")


class Tee:
    """Write-through to several sinks."""

    def __init__(self, *sinks):
        self.sinks = [s for s in sinks if s is not None]

    def write(self, data):
        for sink in self.sinks:
            sink.write(data)
        return len(data)

    def flush(self) -> None:
        for sink in self.sinks:
            flush = getattr(sink, "flush", None)
            if flush is not None:
                flush()


class _SharedBuffer(io.StringIO):
    """StringIO fed by both the stdout and stderr pumps."""

    def __init__(self):
        super().__init__()
        self._lock = threading.Lock()

    def write(self, s):
        with self._lock:
            return super().write(s)


class Status(enum.Enum):
    SUCCESS = "success"
    EXITED = "exited"
    LAUNCH_FAILURE = "launch_failure"


@dataclass(frozen=True)
class Outcome:
    """Classified result of one execution."""

    ran: bool
    code: int = 0
    error: errors.CommandError | None = None

    @property
    def status(self) -> Status:
        if not self.ran:
            return Status.LAUNCH_FAILURE
        if self.error is not None:
            return Status.EXITED
        return Status.SUCCESS

    @property
    def ok(self) -> bool:
        return self.error is None

    def check(self) -> None:
        """Raise the outcome's error, if any."""
        if self.error is not None:
            raise self.error


def expand(value: str, overlay: dict[str, str]) -> str:
    """Replace $NAME and ${NAME} from the overlay, then os.environ, else ""."""

    def lookup(match: re.Match) -> str:
        name = match.group(1) if match.group(1) is not None else match.group(2)
        if name in overlay:
            return overlay[name]
        return os.environ.get(name, "")

    return _VAR.sub(lookup, value)


@dataclass(frozen=True)
class Command:
    """One prospective subprocess invocation.

    Every builder method returns a new Command, so a command can be branched
    into variants without the branches seeing each other's changes.
    Sinks are None (discard), PARENT_STDOUT / PARENT_STDERR, or any object
    with a ``write`` method.
    """

    program: str
    args: tuple[str, ...] = ()
    cwd: str | None = None
    env: tuple[str, ...] = ()
    stdout: object = PARENT_STDOUT
    stderr: object = PARENT_STDERR

    def __str__(self) -> str:
        return " ".join([self.program, *self.args])

    # -- builder --

    def with_args(self, *args: str) -> "Command":
        return dataclasses.replace(self, args=self.args + tuple(args))

    def collapse_args(self) -> "Command":
        """Drop empty-string args, so optional flags can be passed as ""."""
        return dataclasses.replace(self, args=tuple(a for a in self.args if a != ""))

    def with_env(self, *entries: str) -> "Command":
        """Add NAME=value entries on top of the ambient environment."""
        for entry in entries:
            if "=" not in entry:
                raise ValueError(f"environment entry {entry!r} is not NAME=value")
        return dataclasses.replace(self, env=self.env + tuple(entries))

    def with_dir(self, path) -> "Command":
        return dataclasses.replace(self, cwd=os.fspath(path))

    def with_stdout(self, sink) -> "Command":
        return dataclasses.replace(self, stdout=sink)

    def with_stderr(self, sink) -> "Command":
        return dataclasses.replace(self, stderr=sink)

    def silent(self) -> "Command":
        return dataclasses.replace(self, stdout=None, stderr=None)

    def overlay(self) -> dict[str, str]:
        """Overlay entries as a dict; later entries win."""
        return dict(entry.split("=", 1) for entry in self.env)

    # -- execution --

    def exec(self) -> Outcome:
        """Run with the configured sinks and classify the result.

        Never raises for a failed command; see Outcome.check().
        """
        return self._exec(settings.verbose())

    def _exec(self, verbose: bool) -> Outcome:
        overlay = self.overlay()
        program = expand(self.program, overlay)
        args = [expand(a, overlay) for a in self.args]
        if verbose:
            log.command_line(program, args)
        return _launch(
            [program, *args],
            cwd=self.cwd,
            env={**os.environ, **overlay},
            stdout=self.stdout,
            stderr=self.stderr,
        )

    def run(self) -> None:
        """Run, showing stdout only in verbose mode."""
        verbose = settings.verbose()
        stdout = PARENT_STDOUT if verbose else None
        self.with_stdout(stdout)._exec(verbose).check()

    def run_v(self) -> None:
        """Run, always showing stdout."""
        self.with_stdout(PARENT_STDOUT).exec().check()

    def run_e(self) -> None:
        """Run quietly; on failure dump the combined output to stderr."""
        combined = _SharedBuffer()
        outcome = self.with_stdout(combined).with_stderr(combined).exec()
        if not outcome.ok:
            _replay(combined.getvalue())
        outcome.check()

    def run_s(self) -> None:
        """Run with both streams discarded."""
        self.silent().exec().check()

    def output(self) -> str:
        """Run and return stdout minus one trailing newline. Tees stdout in verbose mode."""
        verbose = settings.verbose()
        captured = io.StringIO()
        sink = Tee(captured, PARENT_STDOUT.resolve()) if verbose else captured
        outcome = self.with_stdout(sink)._exec(verbose)
        return _finish(outcome, captured)

    def output_v(self) -> str:
        captured = io.StringIO()
        outcome = self.with_stdout(Tee(captured, PARENT_STDOUT.resolve())).exec()
        return _finish(outcome, captured)

    def output_e(self) -> str:
        captured = io.StringIO()
        combined = _SharedBuffer()
        outcome = self.with_stdout(Tee(captured, combined)).with_stderr(combined).exec()
        if not outcome.ok:
            _replay(combined.getvalue())
        return _finish(outcome, captured)

    def output_s(self) -> str:
        captured = io.StringIO()
        outcome = self.with_stdout(captured).with_stderr(None).exec()
        return _finish(outcome, captured)


def command(program: str, *args: str) -> Command:
    """New command inheriting the environment, stdout and stderr of the caller."""
    return Command(program, tuple(args))


def _replay(text: str) -> None:
    sys.stderr.write(text)
    sys.stderr.flush()


def _finish(outcome: Outcome, captured: io.StringIO) -> str:
    text = captured.getvalue().removesuffix("\n")
    if outcome.error is not None:
        outcome.error.output = text
    outcome.check()
    return text


def _bind(sink):
    """Map a sink to a Popen stream argument, plus the sink a pump should feed."""
    if isinstance(sink, _ParentStream):
        sink = sink.resolve()
    if sink is None:
        return subprocess.DEVNULL, None
    try:
        fd = sink.fileno()
    except (AttributeError, OSError, ValueError):
        return subprocess.PIPE, sink
    # Anything already buffered in the sink must land before the child writes.
    flush = getattr(sink, "flush", None)
    if flush is not None:
        flush()
    return fd, None


def _write(sink, data) -> bool:
    try:
        sink.write(data)
    except (OSError, ValueError) as e:
        log.warning(f"dropping command output: {e}")
        return False
    return True


def _pump(pipe, sink) -> None:
    """Copy a child pipe into a sink until EOF. Keeps draining if the sink breaks."""
    binary = isinstance(sink, (io.RawIOBase, io.BufferedIOBase))
    decoder = None if binary else codecs.getincrementaldecoder("utf-8")(errors="replace")
    healthy = True
    with pipe:
        for chunk in iter(partial(pipe.read1, CHUNK_SIZE), b""):
            if not healthy:
                continue
            data = chunk if binary else decoder.decode(chunk)
            if data:
                healthy = _write(sink, data)
    if not healthy:
        return
    if decoder is not None:
        tail = decoder.decode(b"", final=True)
        if tail and not _write(sink, tail):
            return
    flush = getattr(sink, "flush", None)
    if flush is not None:
        try:
            flush()
        except (OSError, ValueError) as e:
            log.warning(f"dropping command output: {e}")


def _start_pump(pipe, sink) -> threading.Thread:
    thread = threading.Thread(target=_pump, args=(pipe, sink), daemon=True)
    thread.start()
    return thread


def _launch(argv: list[str], cwd, env, stdout, stderr) -> Outcome:
    line = " ".join(argv)
    out_arg, out_sink = _bind(stdout)
    err_arg, err_sink = _bind(stderr)
    try:
        proc = subprocess.Popen(argv, cwd=cwd, env=env, stdout=out_arg, stderr=err_arg)
    except (OSError, ValueError) as e:
        err = errors.LaunchError(line, e)
        return Outcome(ran=False, code=errors.exit_status(err), error=err)

    pumps = []
    if out_sink is not None:
        pumps.append(_start_pump(proc.stdout, out_sink))
    if err_sink is not None:
        pumps.append(_start_pump(proc.stderr, err_sink))
    returncode = proc.wait()
    for pump in pumps:
        pump.join()
    return _classify(line, returncode)


def _classify(line: str, returncode: int) -> Outcome:
    if returncode == 0:
        return Outcome(ran=True, code=0)
    # Popen reports death by signal N as -N; report it the way a shell does.
    code = returncode if returncode > 0 else 128 - returncode
    return Outcome(ran=True, code=code, error=errors.exited(line, code))
