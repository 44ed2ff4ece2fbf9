"""Single analyzer invocation and output forwarding."""

from __future__ import annotations

import dataclasses
import logging
import shlex
import subprocess
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .driver import DriverIO

_logger = logging.getLogger(__name__)

# Shell convention for "command not found"; used when the analyzer cannot be
# started at all.
LAUNCH_FAILURE_EXIT_CODE = 127


@dataclasses.dataclass(frozen=True, slots=True)
class InvocationOutcome:
    """Captured result of running the analyzer on one fixture.

    ``output`` holds the analyzer's stdout and stderr merged into one byte
    stream, in the order the analyzer wrote them.
    """

    index: int
    fixture_path: str
    args: tuple[str, ...]
    returncode: int
    output: bytes = b""

    @property
    def command_line(self) -> str:
        """Return the invocation as a shell-quoted string."""
        return shlex.join(self.args)


def build_invocation_args(
    binary: str,
    flags: cabc.Sequence[str],
    fixture_path: str,
) -> list[str]:
    """Return ``[binary, *flags, fixture_path]``."""
    return [binary, *flags, fixture_path]


def invoke_analyzer(
    args: cabc.Sequence[str],
    *,
    index: int,
    fixture_path: str,
) -> InvocationOutcome:
    """Run the analyzer synchronously and capture what it printed.

    Stderr is redirected into the stdout pipe and nothing is decoded, so
    arbitrary bytes survive unchanged. The return code is recorded but never
    acted upon. A binary that cannot be launched is reported through the
    outcome rather than raised, so a broken analyzer still lets every
    fixture run.
    """
    argv = list(args)
    _logger.debug("Invoking analyzer for fixture %d: %s", index, shlex.join(argv))
    try:
        completed = subprocess.run(  # noqa: S603
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            check=False,
        )
    except OSError as error:
        _logger.debug("Analyzer launch failed for fixture %d: %s", index, error)
        message = f"{argv[0]}: {error.strerror or error}\n"
        return InvocationOutcome(
            index=index,
            fixture_path=fixture_path,
            args=tuple(argv),
            returncode=LAUNCH_FAILURE_EXIT_CODE,
            output=message.encode(),
        )

    _logger.debug("Fixture %d exited with status %d", index, completed.returncode)
    return InvocationOutcome(
        index=index,
        fixture_path=fixture_path,
        args=tuple(argv),
        returncode=completed.returncode,
        output=completed.stdout or b"",
    )


def write_stream_output(stream: typ.IO[str], content: bytes) -> None:
    """Write raw bytes to a text stream without altering them.

    Streams backed by a binary buffer (the real stdout, pipes) receive the
    bytes as-is. In-memory text streams get them decoded, with undecodable
    bytes replaced.
    """
    buffer = getattr(stream, "buffer", None)
    stream.flush()
    if buffer is not None:
        buffer.write(content)
        buffer.flush()
    else:
        stream.write(content.decode("utf-8", errors="replace"))
        stream.flush()


def forward_outcome(outcome: InvocationOutcome, io: DriverIO) -> None:
    """Write the analyzer's combined output to the driver's stdout verbatim."""
    if outcome.output:
        write_stream_output(io.stdout, outcome.output)
