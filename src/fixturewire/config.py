"""Configuration snapshot loading.

The configuration source is a JSON document shaped like an ``appsettings.json``
file. Nested objects are flattened into ``:``-separated keys, so
``{"ConnectionStrings": {"sql-database": "..."}}`` becomes the single key
``ConnectionStrings:sql-database``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import TypeAdapter, ValidationError

from fixturewire.exceptions import ConfigLoadError

logger = logging.getLogger(__name__)

KEY_DELIMITER = ":"
CONNECTION_STRINGS_SECTION = "ConnectionStrings"

_DOCUMENT_ADAPTER: TypeAdapter[dict[str, Any]] = TypeAdapter(dict[str, Any])


class ConfigurationSnapshot(Mapping[str, str]):
    """Immutable view of flattened configuration values."""

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, str]) -> None:
        self._values: Mapping[str, str] = MappingProxyType(dict(values))

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> ConfigurationSnapshot:
        """Build a snapshot from a parsed JSON object."""
        return cls(dict(_flatten(document, prefix="")))

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ConfigurationSnapshot({dict(self._values)!r})"

    def get_connection_string(self, name: str) -> str | None:
        """Return the value stored under ``ConnectionStrings:<name>``, if any."""
        return self._values.get(connection_string_key(name))


def connection_string_key(name: str) -> str:
    return f"{CONNECTION_STRINGS_SECTION}{KEY_DELIMITER}{name}"


def load_configuration(source: str | Path) -> ConfigurationSnapshot:
    """Read and parse a configuration document into a snapshot.

    Args:
        source: Path to a JSON file whose top level is an object.

    Returns:
        The flattened, immutable configuration snapshot.

    Raises:
        ConfigLoadError: If the file is missing, unreadable, not valid JSON or
            not a JSON object.

    """
    path = Path(source)
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise ConfigLoadError(source, exc.strerror or str(exc)) from exc

    try:
        document = _DOCUMENT_ADAPTER.validate_json(raw)
    except ValidationError as exc:
        raise ConfigLoadError(source, "expected a JSON object document") from exc

    snapshot = ConfigurationSnapshot.from_document(document)
    logger.debug("Loaded %d configuration values from %s", len(snapshot), path)
    return snapshot


def _flatten(value: Any, *, prefix: str) -> Iterator[tuple[str, str]]:
    if isinstance(value, Mapping):
        for key, item in value.items():
            yield from _flatten(item, prefix=_join(prefix, str(key)))
    elif isinstance(value, list):
        for index, item in enumerate(value):
            yield from _flatten(item, prefix=_join(prefix, str(index)))
    elif prefix:
        yield prefix, _render_scalar(value)


def _join(prefix: str, key: str) -> str:
    return f"{prefix}{KEY_DELIMITER}{key}" if prefix else key


def _render_scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
