from fixturewire.capabilities import CONFIGURATION, DATABASE_RESOURCE
from fixturewire.config import ConfigurationSnapshot, load_configuration
from fixturewire.container import Container
from fixturewire.database import DatabaseResource, InMemoryDatabase
from fixturewire.exceptions import (
    CircularDependencyError,
    CollectionDefinitionError,
    ConfigLoadError,
    ContainerClosedError,
    FixtureWireError,
    InvalidConfigurationError,
    ResourceClosedError,
    ResourceConstructionError,
    UnresolvedDependencyError,
)
from fixturewire.fixtures import (
    ClassSetup,
    CollectionManager,
    CollectionSetup,
    build_collection_container,
)
from fixturewire.lock_mode import LockMode
from fixturewire.output import OutputHelper
from fixturewire.providers import Binding, Lifetime
from fixturewire.settings import HarnessSettings

__all__ = [
    "CONFIGURATION",
    "DATABASE_RESOURCE",
    "Binding",
    "CircularDependencyError",
    "ClassSetup",
    "CollectionDefinitionError",
    "CollectionManager",
    "CollectionSetup",
    "ConfigLoadError",
    "ConfigurationSnapshot",
    "Container",
    "ContainerClosedError",
    "DatabaseResource",
    "FixtureWireError",
    "HarnessSettings",
    "InMemoryDatabase",
    "InvalidConfigurationError",
    "LockMode",
    "OutputHelper",
    "ResourceClosedError",
    "ResourceConstructionError",
    "UnresolvedDependencyError",
    "build_collection_container",
    "load_configuration",
]
