from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class FixtureWireError(Exception):
    """Represent a base class for all fixturewire failures.

    Catch this type when you want to handle any fixturewire error path without
    matching each concrete exception class individually.
    """


class ConfigLoadError(FixtureWireError):
    """Signal that the configuration source could not be loaded.

    Raised while building a collection container when the configuration file
    is missing, unreadable, not valid JSON, or not a JSON object at the top
    level. No test of the affected collection can run.

    Typical fixes include pointing ``fixturewire_config`` (or the marker's
    ``config=`` argument) at an existing ``appsettings.json`` document.
    """

    def __init__(self, source: str | Path, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Could not load configuration from '{source}': {reason}")


class ResourceConstructionError(FixtureWireError):
    """Signal that a registered factory failed to build its capability.

    Raised by ``Container.resolve`` when the factory of a capability raises.
    The original exception is chained as ``__cause__``. Singleton bindings
    cache the failure, so every later resolution re-raises this same error.
    """

    def __init__(self, message: str, *, capability: str | None = None) -> None:
        self.capability = capability
        super().__init__(message)


class InvalidConfigurationError(ResourceConstructionError):
    """Signal configuration that is present but semantically wrong.

    Raised by resource constructors that validate the configuration snapshot,
    for example ``InMemoryDatabase`` when the connection string does not match
    the expected value.
    """

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(message)


class UnresolvedDependencyError(FixtureWireError):
    """Signal that a capability has no binding.

    Raised by ``Container.resolve`` when the requested capability, or one of
    the dependencies declared by its factory, was never registered. This is a
    programming error in the collection setup.
    """

    def __init__(self, capability: str, *, requested_by: str | None = None) -> None:
        self.capability = capability
        self.requested_by = requested_by
        message = f"Capability '{capability}' is not registered"
        if requested_by is not None:
            message += f" (required by '{requested_by}')"
        super().__init__(message)


class CircularDependencyError(FixtureWireError):
    """Signal a capability that depends on itself through its factories."""

    def __init__(self, chain: Sequence[str]) -> None:
        self.chain = tuple(chain)
        super().__init__(f"Circular dependency detected: {' -> '.join(self.chain)}")


class ContainerClosedError(FixtureWireError):
    """Signal use of a container after ``Container.close`` was called."""


class ResourceClosedError(FixtureWireError):
    """Signal use of a stand-in resource after it was closed by teardown."""


class CollectionDefinitionError(FixtureWireError):
    """Signal conflicting definitions of the same named collection.

    Raised when two test classes mark the same collection name with different
    configuration sources.
    """
