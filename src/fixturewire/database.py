"""A stand-in database used as the shared resource of a test collection."""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from fixturewire.config import ConfigurationSnapshot, connection_string_key
from fixturewire.exceptions import InvalidConfigurationError, ResourceClosedError

logger = logging.getLogger(__name__)

CONNECTION_STRING_NAME = "sql-database"
EXPECTED_CONNECTION_STRING = "my connection string"


@runtime_checkable
class DatabaseResource(Protocol):
    """Readable and appendable state shared between tests."""

    def get(self) -> str: ...

    def insert(self, data: str) -> None: ...


class InMemoryDatabase:
    """String buffer that emulates a database connection.

    Construction validates the ``sql-database`` connection string of the
    configuration snapshot; the buffer starts empty.
    """

    def __init__(self, configuration: ConfigurationSnapshot) -> None:
        connection_string = configuration.get_connection_string(CONNECTION_STRING_NAME)
        if connection_string != EXPECTED_CONNECTION_STRING:
            key = connection_string_key(CONNECTION_STRING_NAME)
            msg = f"SQL database connection string invalid: {key}={connection_string!r}"
            raise InvalidConfigurationError(key, msg)

        self._buffer = ""
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self) -> str:
        self._ensure_open()
        return self._buffer

    def insert(self, data: str) -> None:
        self._ensure_open()
        self._buffer += data

    def close(self) -> None:
        logger.debug("Closing in-memory database (%d characters)", len(self._buffer))
        self._closed = True

    def _ensure_open(self) -> None:
        if self._closed:
            msg = "Database resource is closed"
            raise ResourceClosedError(msg)
