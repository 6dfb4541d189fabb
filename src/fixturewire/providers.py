from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, TypeAlias

from fixturewire.lock_mode import LockMode

Capability: TypeAlias = str
"""An abstract dependency role, for example ``"database resource"``."""

Factory: TypeAlias = Callable[..., Any]
"""A callable that builds a capability from its declared dependencies."""

Finalizer: TypeAlias = Callable[[Any], None]
"""A callable that releases an instance built by a factory."""


class Lifetime(Enum):
    """Defines the lifetime of a capability in the container."""

    TRANSIENT = auto()
    """A new instance is created every time the capability is requested."""

    SINGLETON = auto()
    """A single instance is created and shared for the lifetime of the container."""


@dataclass(frozen=True, kw_only=True)
class Binding:
    """A construction rule for one capability."""

    provides: Capability
    """The capability that this binding supplies."""
    factory: Factory
    """Factory invoked with the resolved dependencies as positional arguments."""
    dependencies: tuple[Capability, ...] = field(default_factory=tuple)
    """Capabilities resolved and passed to the factory, in order."""
    lifetime: Lifetime = Lifetime.SINGLETON
    """How long a built instance is reused."""
    finalizer: Finalizer | None = None
    """Optional teardown hook run by ``Container.close`` for built singletons."""
    lock_mode: LockMode = LockMode.THREAD
    """Locking strategy around first construction of a singleton."""

    @property
    def is_cached(self) -> bool:
        return self.lifetime is Lifetime.SINGLETON
