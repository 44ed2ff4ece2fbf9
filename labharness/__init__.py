"""Build an analyzer binary and run it across a battery of fixture files."""

from __future__ import annotations

from .driver import DriverIO, DriverOptions, run_driver, run_fixtures
from .errors import HarnessError
from .fixtures import render_fixture_path
from .invocation import InvocationOutcome

__all__ = [
    "DriverIO",
    "DriverOptions",
    "HarnessError",
    "InvocationOutcome",
    "render_fixture_path",
    "run_driver",
    "run_fixtures",
]
