"""Build phase: compile the analyzer before any fixture runs."""

from __future__ import annotations

import logging
import shlex
import subprocess
import typing as typ

from .errors import HarnessError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

_logger = logging.getLogger(__name__)

ERROR_EMPTY_BUILD_COMMAND = "command is empty"


class BuildFailureError(HarnessError):
    """Raised when the analyzer build fails; no fixtures are run afterwards."""

    def __init__(self, command: cabc.Sequence[str], detail: str) -> None:
        """Record the failing command alongside the reason."""
        self.command = tuple(command)
        super().__init__(f"Build command `{shlex.join(command)}` failed: {detail}")


def run_build(command: cabc.Sequence[str]) -> None:
    """Run the build command once, inheriting the operator's terminal.

    Raises:
        BuildFailureError: The command is empty, cannot be started, or exits
            non-zero.

    """
    args = list(command)
    if not args:
        raise BuildFailureError(args, ERROR_EMPTY_BUILD_COMMAND)

    _logger.debug("Running build command: %s", shlex.join(args))
    try:
        subprocess.run(args, check=True)  # noqa: S603
    except FileNotFoundError as error:
        raise BuildFailureError(args, f"executable {args[0]!r} not found") from error
    except subprocess.CalledProcessError as error:
        raise BuildFailureError(args, f"exit status {error.returncode}") from error
    except OSError as error:
        raise BuildFailureError(args, str(error)) from error
