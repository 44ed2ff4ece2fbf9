"""Shared pytest fixtures for labharness tests."""

from __future__ import annotations

import collections
import collections.abc as cabc
import dataclasses
import pathlib
import subprocess
import sys
import textwrap

import pytest


class ReplayError(AssertionError):
    """Raised when a subprocess call does not match the scripted sequence."""


@dataclasses.dataclass(frozen=True)
class ScriptedProcess:
    """One anticipated subprocess call and the result to hand back."""

    command: str
    args: tuple[str, ...] | None
    exit_code: int = 0
    stdout: bytes = b""
    stderr: bytes = b""
    error: OSError | None = None


@dataclasses.dataclass(frozen=True)
class RecordedCall:
    """A subprocess invocation observed by the harness."""

    command: str
    args: tuple[str, ...]
    kwargs: dict[str, object]


def _as_bytes(value: str | bytes) -> bytes:
    return value.encode() if isinstance(value, str) else value


class CmdMox:
    """Replace ``subprocess.run`` with a queue of scripted processes."""

    def __init__(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Keep the monkeypatch helper until :meth:`replay` is called."""
        self._monkeypatch = monkeypatch
        self._queue: collections.deque[ScriptedProcess] = collections.deque()
        self.calls: list[RecordedCall] = []

    def mock(self, command: str) -> _ProcessBuilder:
        """Start scripting a call to ``command`` (matched by basename)."""
        return _ProcessBuilder(self, command)

    def replay(self) -> None:
        """Patch subprocess.run so scripted results are returned in order."""
        self._monkeypatch.setattr(subprocess, "run", self._run)

    def verify(self) -> None:
        """Fail when scripted calls were never made."""
        if self._queue:
            msg = f"Unconsumed scripted calls remain: {list(self._queue)}"
            raise ReplayError(msg)

    def _run(
        self,
        args: cabc.Iterable[str],
        **kwargs: object,
    ) -> subprocess.CompletedProcess[bytes]:
        argv = list(args)
        command = pathlib.Path(argv[0]).name
        self.calls.append(RecordedCall(command, tuple(argv[1:]), dict(kwargs)))
        if not self._queue:
            msg = f"Unexpected command invocation: {' '.join(argv)}"
            raise ReplayError(msg)

        scripted = self._queue.popleft()
        if command != scripted.command:
            msg = f"Expected {scripted.command!r} but received {command!r}"
            raise ReplayError(msg)
        if scripted.args is not None and tuple(argv[1:]) != scripted.args:
            msg = f"{command!r} expected args {scripted.args} but got {argv[1:]}"
            raise ReplayError(msg)
        if scripted.error is not None:
            raise scripted.error
        if kwargs.get("check") and scripted.exit_code != 0:
            raise subprocess.CalledProcessError(scripted.exit_code, argv)

        stdout: bytes | None = None
        stderr: bytes | None = None
        if kwargs.get("stdout") == subprocess.PIPE:
            stdout = scripted.stdout
            if kwargs.get("stderr") == subprocess.STDOUT:
                stdout += scripted.stderr
        return subprocess.CompletedProcess(argv, scripted.exit_code, stdout, stderr)


class _ProcessBuilder:
    """Fluent helper for scripting one :class:`CmdMox` call."""

    def __init__(self, harness: CmdMox, command: str) -> None:
        self._harness = harness
        self._command = command
        self._args: tuple[str, ...] | None = None

    def with_args(self, *args: str) -> _ProcessBuilder:
        """Require the call to carry exactly these arguments."""
        self._args = args
        return self

    def returns(
        self,
        exit_code: int = 0,
        stdout: str | bytes = b"",
        stderr: str | bytes = b"",
    ) -> CmdMox:
        """Finish the call with an exit code and captured output."""
        self._harness._queue.append(
            ScriptedProcess(
                self._command,
                self._args,
                exit_code=exit_code,
                stdout=_as_bytes(stdout),
                stderr=_as_bytes(stderr),
            )
        )
        return self._harness

    def raises(self, error: OSError) -> CmdMox:
        """Make the call fail to launch with ``error``."""
        self._harness._queue.append(
            ScriptedProcess(self._command, self._args, error=error)
        )
        return self._harness


@pytest.fixture
def cmd_mox(monkeypatch: pytest.MonkeyPatch) -> CmdMox:
    """Expose the subprocess replay harness to tests."""
    return CmdMox(monkeypatch)


# Behaviour is steered per fixture name through comma-separated env lists:
# FAKE_ANALYZER_FAIL prints a diagnostic to stderr before the stdout line and
# exits 2; FAKE_ANALYZER_RAW writes undecodable bytes with no trailing newline.
FAKE_ANALYZER_SOURCE = textwrap.dedent(
    """
    import os
    import sys

    LOG = os.environ.get("FAKE_ANALYZER_LOG")
    ARGS = sys.argv[1:]
    if LOG:
        with open(LOG, "a", encoding="utf-8") as handle:
            handle.write(" ".join(ARGS) + "\\n")
    fixture = ARGS[-1] if ARGS else ""
    name = os.path.basename(fixture)
    failing = set(os.environ.get("FAKE_ANALYZER_FAIL", "").split(","))
    raw = set(os.environ.get("FAKE_ANALYZER_RAW", "").split(","))
    if name in raw:
        sys.stdout.buffer.write(b"bad byte \\xff")
        sys.stdout.buffer.flush()
        raise SystemExit(0)
    if name in failing:
        print("syntax error in", name, file=sys.stderr, flush=True)
        print("analyzed", fixture, flush=True)
        raise SystemExit(2)
    print("analyzed", fixture, flush=True)
    raise SystemExit(0)
    """
)


@dataclasses.dataclass(frozen=True)
class FakeAnalyzer:
    """Executable stand-in for the compiled analyzer."""

    binary: pathlib.Path
    log_path: pathlib.Path

    def invocations(self) -> list[str]:
        """Return the argument lines the fake analyzer recorded."""
        if not self.log_path.exists():
            return []
        return self.log_path.read_text(encoding="utf-8").splitlines()


@pytest.fixture
def fake_analyzer(
    tmp_path: pathlib.Path,
    monkeypatch: pytest.MonkeyPatch,
) -> FakeAnalyzer:
    """Write an executable script that logs its arguments and echoes a line."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    script = bin_dir / "analyzer"
    script.write_text("#!" + sys.executable + "\n" + FAKE_ANALYZER_SOURCE)
    script.chmod(0o755)
    log_path = tmp_path / "fake-analyzer.log"
    monkeypatch.setenv("FAKE_ANALYZER_LOG", str(log_path))
    monkeypatch.delenv("FAKE_ANALYZER_FAIL", raising=False)
    monkeypatch.delenv("FAKE_ANALYZER_RAW", raising=False)
    return FakeAnalyzer(binary=script, log_path=log_path)
