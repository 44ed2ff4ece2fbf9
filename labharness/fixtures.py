"""Fixture numbering and path rendering.

Fixtures are addressed by a 1-based index. Paths are produced from a
``str.format`` template carrying a single ``{index}`` field, so
``./Code/Tests/test{index}.xai`` renders index 3 as
``./Code/Tests/test3.xai``. Nothing here touches the filesystem.
"""

from __future__ import annotations

import string

from .errors import HarnessError

DEFAULT_FIXTURE_COUNT = 18
DEFAULT_FIXTURE_TEMPLATE = "./Code/Tests/test{index}.xai"
INDEX_FIELD = "index"


class FixtureError(HarnessError):
    """Base class for fixture numbering errors."""


class InvalidFixtureCountError(FixtureError):
    """Raised when the fixture count is not a positive integer."""

    def __init__(self, count: object) -> None:
        """Initialise the error with the rejected count."""
        super().__init__(f"Fixture count must be a positive integer, got {count!r}.")


class InvalidFixtureIndexError(FixtureError):
    """Raised when rendering a path for an index outside 1..N."""

    def __init__(self, index: object) -> None:
        """Initialise the error with the rejected index."""
        super().__init__(f"Fixture index must be a positive integer, got {index!r}.")


class InvalidFixtureTemplateError(FixtureError):
    """Raised when a fixture template lacks a single {index} field."""

    def __init__(self, template: str, detail: str) -> None:
        """Initialise the error with the template and what is wrong with it."""
        super().__init__(f"Invalid fixture template {template!r}: {detail}.")


def _is_positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_fixture_count(count: object) -> int:
    """Return ``count`` when it is a usable fixture count."""
    if not _is_positive_int(count):
        raise InvalidFixtureCountError(count)
    return count  # type: ignore[return-value]


def validate_fixture_template(template: str) -> str:
    """Ensure the template has exactly one replacement field named ``index``."""
    try:
        fields = [
            field_name
            for _, field_name, _, _ in string.Formatter().parse(template)
            if field_name is not None
        ]
    except ValueError as error:
        raise InvalidFixtureTemplateError(template, str(error)) from error

    if fields != [INDEX_FIELD]:
        detail = (
            "expected exactly one {index} field"
            if INDEX_FIELD in fields
            else "missing {index} field"
        )
        raise InvalidFixtureTemplateError(template, detail)
    return template


def render_fixture_path(index: int, template: str = DEFAULT_FIXTURE_TEMPLATE) -> str:
    """Return the fixture path for ``index``.

    Args:
        index: 1-based fixture number.
        template: Format string with a single ``{index}`` field.

    Returns:
        The rendered path. Existence is not checked.

    """
    if not _is_positive_int(index):
        raise InvalidFixtureIndexError(index)
    return validate_fixture_template(template).format(index=index)


def fixture_indices(count: int) -> range:
    """Return the ascending, contiguous indices ``1..count``."""
    return range(1, validate_fixture_count(count) + 1)


def fixture_paths(count: int, template: str = DEFAULT_FIXTURE_TEMPLATE) -> list[str]:
    """Render every fixture path for a battery of ``count`` fixtures."""
    validate_fixture_template(template)
    return [render_fixture_path(index, template) for index in fixture_indices(count)]
