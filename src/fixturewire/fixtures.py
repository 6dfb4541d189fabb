"""Collection-level and class-level fixture objects.

``CollectionSetup`` is built once per named collection and owns the
container. ``ClassSetup`` is built once per test class and pulls the shared
database out of that container, so every class of the collection sees the
same instance.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import cast

from fixturewire.capabilities import CONFIGURATION, DATABASE_RESOURCE
from fixturewire.config import load_configuration
from fixturewire.container import Container
from fixturewire.database import DatabaseResource, InMemoryDatabase
from fixturewire.exceptions import CollectionDefinitionError, FixtureWireError
from fixturewire.lock_mode import LockMode
from fixturewire.providers import Lifetime

logger = logging.getLogger(__name__)


def build_collection_container(
    config_source: str | Path,
    *,
    lock_mode: LockMode = LockMode.THREAD,
) -> Container:
    """Load configuration and register the collection's bindings.

    The database is registered lazily: it is constructed on first resolution.

    Raises:
        ConfigLoadError: If the configuration source cannot be loaded.

    """
    configuration = load_configuration(config_source)

    container = Container(lock_mode=lock_mode)
    container.add_instance(configuration, provides=CONFIGURATION)
    container.add_factory(
        InMemoryDatabase,
        provides=DATABASE_RESOURCE,
        dependencies=(CONFIGURATION,),
        lifetime=Lifetime.SINGLETON,
        finalizer=InMemoryDatabase.close,
    )
    return container


class CollectionSetup:
    """Fixture shared by every test class of one collection."""

    def __init__(
        self,
        config_source: str | Path,
        *,
        name: str = "default",
        lock_mode: LockMode = LockMode.THREAD,
    ) -> None:
        self.name = name
        self.config_source = Path(config_source)
        self.container = build_collection_container(config_source, lock_mode=lock_mode)
        logger.info("Built collection '%s' from %s", name, self.config_source)

    def close(self) -> None:
        logger.info("Closing collection '%s'", self.name)
        self.container.close()


class ClassSetup:
    """Fixture built once per test class; holds the shared database."""

    def __init__(self, setup: CollectionSetup) -> None:
        self.db = cast("DatabaseResource", setup.container.resolve(DATABASE_RESOURCE))


class CollectionManager:
    """Builds and caches one ``CollectionSetup`` per collection name.

    A collection whose setup failed keeps failing with the same error, so every
    test class in it reports the same cause.
    """

    def __init__(self, *, lock_mode: LockMode = LockMode.THREAD) -> None:
        self._lock_mode = lock_mode
        self._lock = threading.Lock()
        self._setups: dict[str, CollectionSetup] = {}
        self._sources: dict[str, Path] = {}
        self._failures: dict[str, FixtureWireError] = {}

    def get(self, name: str, config_source: str | Path) -> CollectionSetup:
        """Return the setup for ``name``, building it on first request.

        Raises:
            CollectionDefinitionError: If ``name`` was already requested with a
                different configuration source.
            ConfigLoadError: If the configuration cannot be loaded.

        """
        source = Path(config_source)
        with self._lock:
            known_source = self._sources.setdefault(name, source)
            if known_source != source:
                msg = (
                    f"Collection '{name}' is defined with configuration '{known_source}' "
                    f"and '{source}'"
                )
                raise CollectionDefinitionError(msg)

            if name in self._failures:
                raise self._failures[name]
            setup = self._setups.get(name)
            if setup is None:
                try:
                    setup = CollectionSetup(source, name=name, lock_mode=self._lock_mode)
                except FixtureWireError as exc:
                    self._failures[name] = exc
                    raise
                self._setups[name] = setup
            return setup

    def close(self) -> None:
        """Close every built collection, most recently built first."""
        with self._lock:
            setups = list(self._setups.values())
            self._setups.clear()
        for setup in reversed(setups):
            setup.close()
