"""Command line entry points for the labharness tooling."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from cyclopts import App

from .config import HarnessConfig, load_config
from .driver import DriverIO, DriverOptions, run_driver
from .errors import HarnessError
from .fixtures import fixture_paths

app = App(help="Build an analyzer binary and run it over numbered fixtures.")

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def _resolve_config(
    config: Path | None,
    *,
    count: int | None = None,
    package: str | None = None,
    binary: str | None = None,
    template: str | None = None,
) -> HarnessConfig:
    """Load the config file and layer command-line overrides on top."""
    return load_config(config).with_overrides(
        fixture_count=count,
        package=package,
        analyzer_binary=binary,
        fixture_template=template,
    )


@app.command()
def run(
    *,
    count: int | None = None,
    package: str | None = None,
    binary: str | None = None,
    template: str | None = None,
    config: Path | None = None,
    build: bool = True,
    verbose: bool = False,
) -> int:
    """Build the analyzer and print its output for every fixture.

    With no options this builds Lab1 and runs all 18 fixtures. Every other
    option, the config file and LABHARNESS_CONFIG are opt-in extras.

    Parameters
    ----------
    count
        Number of fixtures to run (defaults to 18).
    package
        Cargo package to build and exercise.
    binary
        Analyzer binary path; defaults to ./target/debug/<package>.
    template
        Fixture path template containing an {index} field.
    config
        YAML config file; defaults to $LABHARNESS_CONFIG, then
        ./labharness.yaml. Optional; built-in defaults apply without one.
    build
        Run the build command before the fixtures. --no-build is an
        opt-in shortcut for an analyzer that is already built.
    verbose
        Log each invocation to stderr.

    """
    _configure_logging(verbose=verbose)
    settings = _resolve_config(
        config,
        count=count,
        package=package,
        binary=binary,
        template=template,
    )
    options = DriverOptions.from_config(settings, build=build)
    io = DriverIO(stdout=sys.stdout, stderr=sys.stderr)
    exit_code, _ = run_driver(options, io)
    return exit_code


@app.command()
def ls(
    *,
    count: int | None = None,
    template: str | None = None,
    config: Path | None = None,
) -> None:
    """List the fixture paths a run would use, without running anything."""
    settings = _resolve_config(config, count=count, template=template)
    for path in fixture_paths(settings.fixture_count, settings.fixture_template):
        print(path)


def main(argv: list[str] | tuple[str, ...] | None = None) -> int:
    """Entry point for the labharness CLI."""
    try:
        result = app(argv)
    except HarnessError as error:
        print(f"labharness: {error}", file=sys.stderr)
        return 1
    return int(result or 0)


if __name__ == "__main__":
    raise SystemExit(main())
