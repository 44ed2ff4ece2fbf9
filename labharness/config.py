"""Harness configuration: defaults, YAML config file, and CLI overrides."""

from __future__ import annotations

import dataclasses
import os
import shlex
import typing as typ
from pathlib import Path

from cyclopts import config as cyclopts_config
from ruamel.yaml import YAML

from .errors import HarnessError
from .fixtures import (
    DEFAULT_FIXTURE_COUNT,
    DEFAULT_FIXTURE_TEMPLATE,
    validate_fixture_count,
    validate_fixture_template,
)

DEFAULT_PACKAGE = "Lab1"
DEFAULT_ANALYZER_FLAGS: tuple[str, ...] = ("-p", "-c")
CONFIG_FILENAME = "labharness.yaml"
CONFIG_ENV_VAR = "LABHARNESS_CONFIG"
HARNESS_SECTION = "harness"

_yaml = YAML(typ="safe")


class HarnessConfigError(HarnessError):
    """Raised when the harness configuration file holds an unusable value."""

    def __init__(self, key: str, detail: str) -> None:
        """Initialise the error with the offending key."""
        super().__init__(f"Invalid harness config value for {key!r}: {detail}.")


class _YamlConfig(cyclopts_config.ConfigFromFile):
    """Cyclopts config provider backed by ruamel.yaml."""

    def _load_config(self, path: Path) -> dict[str, typ.Any]:
        if not path.exists():
            return {}
        with path.open("r", encoding="utf-8") as handle:
            contents = _yaml.load(handle) or {}
        return dict(contents) if isinstance(contents, dict) else {}


def default_analyzer_binary(package: str) -> str:
    """Return the debug build output path cargo uses for ``package``."""
    return f"./target/debug/{package}"


def default_build_command(package: str) -> tuple[str, ...]:
    """Return the cargo invocation that builds ``package``."""
    return ("cargo", "build", "--package", package)


@dataclasses.dataclass(frozen=True, slots=True)
class HarnessConfig:
    """Resolved settings for one harness run."""

    fixture_count: int = DEFAULT_FIXTURE_COUNT
    package: str = DEFAULT_PACKAGE
    analyzer_binary: str = default_analyzer_binary(DEFAULT_PACKAGE)
    analyzer_flags: tuple[str, ...] = DEFAULT_ANALYZER_FLAGS
    fixture_template: str = DEFAULT_FIXTURE_TEMPLATE
    build_command: tuple[str, ...] = default_build_command(DEFAULT_PACKAGE)

    @classmethod
    def for_package(cls, package: str, **values: typ.Any) -> HarnessConfig:
        """Build a config whose binary and build command follow ``package``."""
        values.setdefault("analyzer_binary", default_analyzer_binary(package))
        values.setdefault("build_command", default_build_command(package))
        return cls(package=package, **values)

    def with_overrides(self, **overrides: typ.Any) -> HarnessConfig:
        """Return a copy with non-``None`` overrides applied.

        Switching ``package`` re-derives the analyzer binary and build command
        unless those are overridden too or were customised away from the
        previous package's defaults.
        """
        values = {key: value for key, value in overrides.items() if value is not None}
        package = values.get("package")
        if package and package != self.package:
            if self.analyzer_binary == default_analyzer_binary(self.package):
                values.setdefault("analyzer_binary", default_analyzer_binary(package))
            if self.build_command == default_build_command(self.package):
                values.setdefault("build_command", default_build_command(package))
        if "analyzer_flags" in values:
            values["analyzer_flags"] = tuple(values["analyzer_flags"])
        if "build_command" in values:
            values["build_command"] = tuple(values["build_command"])
        updated = dataclasses.replace(self, **values)
        updated.validate()
        return updated

    def validate(self) -> None:
        """Raise a harness error when any setting is unusable."""
        validate_fixture_count(self.fixture_count)
        validate_fixture_template(self.fixture_template)
        if not self.analyzer_binary:
            raise HarnessConfigError("analyzer_binary", "must not be empty")
        if not self.build_command:
            raise HarnessConfigError("build_command", "must not be empty")


def default_config_path() -> Path:
    """Return the config file path, honouring ``LABHARNESS_CONFIG``."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.cwd() / CONFIG_FILENAME


def load_config(config_path: Path | None = None) -> HarnessConfig:
    """Load harness settings from YAML, falling back to defaults."""
    section = _load_section(config_path)
    values: dict[str, typ.Any] = {}

    if "fixture_count" in section:
        values["fixture_count"] = _as_count(section["fixture_count"])
    if "fixture_template" in section:
        values["fixture_template"] = _as_string("fixture_template", section)
    if "analyzer_binary" in section:
        values["analyzer_binary"] = _as_string("analyzer_binary", section)
    if "analyzer_flags" in section:
        values["analyzer_flags"] = _as_argv("analyzer_flags", section)
    if "build_command" in section:
        values["build_command"] = _as_argv("build_command", section)

    package = (
        _as_string("package", section) if "package" in section else DEFAULT_PACKAGE
    )
    config = HarnessConfig.for_package(package, **values)
    config.validate()
    return config


def _load_section(config_path: Path | None) -> dict[str, typ.Any]:
    path = config_path or default_config_path()
    provider = _YamlConfig(path=str(path), must_exist=False)
    raw = provider.config or {}
    data = dict(raw) if isinstance(raw, dict) else {}
    section = data.get(HARNESS_SECTION, {})
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise HarnessConfigError(HARNESS_SECTION, "expected a mapping")
    return dict(section)


def _as_count(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise HarnessConfigError("fixture_count", "expected a positive integer")
    return value


def _as_string(key: str, section: dict[str, typ.Any]) -> str:
    value = section[key]
    if not isinstance(value, str) or not value.strip():
        raise HarnessConfigError(key, "expected a non-empty string")
    return value


def _as_argv(key: str, section: dict[str, typ.Any]) -> tuple[str, ...]:
    value = section[key]
    if isinstance(value, str):
        return tuple(shlex.split(value))
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return tuple(value)
    raise HarnessConfigError(key, "expected a list of strings or a command string")
