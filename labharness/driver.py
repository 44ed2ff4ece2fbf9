"""Sequential driver that runs the analyzer over every fixture."""

from __future__ import annotations

import dataclasses
import logging
import typing as typ

from .build import run_build
from .fixtures import (
    DEFAULT_FIXTURE_TEMPLATE,
    fixture_indices,
    render_fixture_path,
    validate_fixture_template,
)
from .invocation import (
    InvocationOutcome,
    build_invocation_args,
    forward_outcome,
    invoke_analyzer,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .config import HarnessConfig

_logger = logging.getLogger(__name__)

HEADER_TEMPLATE = "Test {index}"
SEPARATOR = "\n\n"


@dataclasses.dataclass(frozen=True)
class DriverOptions:
    """Everything the driver needs to build and exercise the analyzer."""

    fixture_count: int
    analyzer_binary: str
    analyzer_flags: cabc.Sequence[str] = dataclasses.field(default_factory=tuple)
    fixture_template: str = DEFAULT_FIXTURE_TEMPLATE
    build_command: cabc.Sequence[str] = dataclasses.field(default_factory=tuple)
    build: bool = True

    @classmethod
    def from_config(cls, config: HarnessConfig, *, build: bool = True) -> DriverOptions:
        """Translate resolved harness settings into driver options."""
        return cls(
            fixture_count=config.fixture_count,
            analyzer_binary=config.analyzer_binary,
            analyzer_flags=config.analyzer_flags,
            fixture_template=config.fixture_template,
            build_command=config.build_command,
            build=build,
        )


@dataclasses.dataclass(frozen=True)
class DriverIO:
    """Output streams used by the driver."""

    stdout: typ.IO[str]
    stderr: typ.IO[str]


def render_header(index: int) -> str:
    """Return the line announcing fixture ``index``."""
    return HEADER_TEMPLATE.format(index=index)


def _write(stream: typ.IO[str], text: str) -> None:
    stream.write(text)
    stream.flush()


def run_fixtures(options: DriverOptions, io: DriverIO) -> list[InvocationOutcome]:
    """Invoke the analyzer once per fixture, in ascending order.

    Every fixture is attempted exactly once. Return codes are collected in
    the outcomes but never change the control flow.
    """
    indices = fixture_indices(options.fixture_count)
    validate_fixture_template(options.fixture_template)

    outcomes: list[InvocationOutcome] = []
    for index in indices:
        _write(io.stdout, render_header(index) + "\n")
        fixture_path = render_fixture_path(index, options.fixture_template)
        args = build_invocation_args(
            options.analyzer_binary,
            options.analyzer_flags,
            fixture_path,
        )
        outcome = invoke_analyzer(args, index=index, fixture_path=fixture_path)
        forward_outcome(outcome, io)
        _write(io.stdout, SEPARATOR)
        outcomes.append(outcome)
    return outcomes


def run_driver(
    options: DriverOptions,
    io: DriverIO,
) -> tuple[int, list[InvocationOutcome]]:
    """Build the analyzer, then run it across the whole fixture battery.

    Returns:
        ``0`` and the per-fixture outcomes. A failed build raises
        :class:`~labharness.build.BuildFailureError` before any fixture runs.

    """
    fixture_indices(options.fixture_count)
    validate_fixture_template(options.fixture_template)

    if options.build:
        run_build(options.build_command)
    else:
        _logger.debug("Skipping build phase")

    outcomes = run_fixtures(options, io)
    _logger.debug("Ran %d fixtures", len(outcomes))
    return 0, outcomes
