from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from contextlib import AbstractContextManager, ExitStack, nullcontext
from contextvars import ContextVar
from types import TracebackType
from typing import Any, Literal

from typing_extensions import Self

from fixturewire.exceptions import (
    CircularDependencyError,
    ContainerClosedError,
    ResourceConstructionError,
    UnresolvedDependencyError,
)
from fixturewire.lock_mode import LockMode
from fixturewire.providers import Binding, Capability, Factory, Finalizer, Lifetime

logger = logging.getLogger(__name__)

# Capabilities currently under construction in this context, outermost first.
_resolution_chain: ContextVar[tuple[Capability, ...]] = ContextVar(
    "fixturewire_resolution_chain",
    default=(),
)


class _Slot:
    """Binding plus its construct-once state."""

    __slots__ = ("binding", "built", "error", "instance", "lock")

    def __init__(self, binding: Binding, *, built: bool = False, instance: Any = None) -> None:
        self.binding = binding
        self.built = built
        self.instance = instance
        self.error: ResourceConstructionError | None = None
        self.lock: AbstractContextManager[Any] = (
            threading.Lock() if binding.lock_mode is LockMode.THREAD else nullcontext()
        )


class Container:
    """Registry of capability bindings with construct-once resolution.

    A container is built once per test collection. Singleton bindings are
    constructed lazily on first resolution and reused by every later caller,
    which is what makes one resource instance visible to every test class of
    the collection.
    """

    def __init__(self, *, lock_mode: LockMode = LockMode.THREAD) -> None:
        """Initialize an empty container.

        Args:
            lock_mode: Default lock strategy for bindings registered with
                ``lock_mode="from_container"``. ``LockMode.NONE`` leaves first
                resolution unguarded.

        """
        self._lock_mode = lock_mode
        self._slots: dict[Capability, _Slot] = {}
        self._built: list[_Slot] = []
        self._registry_lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    # region Registration Methods
    def add_instance(self, instance: Any, *, provides: Capability) -> None:
        """Register a pre-built instance as a capability.

        The instance is not owned by the container: no finalizer runs for it on
        ``close``. Re-registering a capability overrides the previous binding.

        Args:
            instance: Value returned on every resolution.
            provides: Capability name to bind.

        """
        binding = Binding(
            provides=provides,
            factory=lambda: instance,
            lifetime=Lifetime.SINGLETON,
            lock_mode=LockMode.NONE,
        )
        self._store(_Slot(binding, built=True, instance=instance))

    def add_factory(
        self,
        factory: Factory,
        *,
        provides: Capability,
        dependencies: Iterable[Capability] = (),
        lifetime: Lifetime = Lifetime.SINGLETON,
        finalizer: Finalizer | None = None,
        lock_mode: LockMode | Literal["from_container"] = "from_container",
    ) -> None:
        """Register a factory that builds a capability from its dependencies.

        Dependencies are resolved from this container at construction time and
        passed to the factory positionally, in declaration order. Nothing is
        constructed by this call.

        Args:
            factory: Callable producing the instance.
            provides: Capability name to bind.
            dependencies: Capability names the factory needs.
            lifetime: ``Lifetime.SINGLETON`` to construct at most once,
                ``Lifetime.TRANSIENT`` to construct on every resolution.
            finalizer: Teardown hook called with the instance on ``close``.
                Only used for singletons.
            lock_mode: Lock strategy for first construction, or
                ``"from_container"`` to use the container default.

        Examples:
            .. code-block:: python

                container = Container()
                container.add_instance(snapshot, provides="configuration")
                container.add_factory(
                    InMemoryDatabase,
                    provides="database resource",
                    dependencies=("configuration",),
                )

        """
        binding = Binding(
            provides=provides,
            factory=factory,
            dependencies=tuple(dependencies),
            lifetime=lifetime,
            finalizer=finalizer,
            lock_mode=self._lock_mode if lock_mode == "from_container" else lock_mode,
        )
        self._store(_Slot(binding))

    # endregion Registration Methods

    def is_registered(self, capability: Capability) -> bool:
        return capability in self._slots

    def resolve(self, capability: Capability) -> Any:
        """Return the instance bound to ``capability``.

        Singleton bindings run their factory exactly once; later calls return
        the cached instance, or re-raise the cached construction failure.

        Args:
            capability: Capability name to resolve.

        Returns:
            The constructed or cached instance.

        Raises:
            UnresolvedDependencyError: If the capability or one of its
                dependencies is not registered.
            ResourceConstructionError: If a factory raised. Subclasses such as
                ``InvalidConfigurationError`` propagate as raised.
            CircularDependencyError: If the capability depends on itself.
            ContainerClosedError: If the container was closed.

        """
        return self._resolve(capability, requested_by=None)

    def close(self) -> None:
        """Run finalizers of constructed singletons in reverse construction order.

        Calling ``close`` more than once is a no-op. Every finalizer runs even
        if an earlier one raised; the last error propagates.
        """
        with self._registry_lock:
            if self._closed:
                return
            self._closed = True
            built = list(self._built)
            self._built.clear()
            self._slots.clear()

        logger.debug("Closing container with %d constructed singletons", len(built))
        with ExitStack() as stack:
            for slot in built:
                finalizer = slot.binding.finalizer
                if finalizer is not None:
                    stack.callback(finalizer, slot.instance)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def _store(self, slot: _Slot) -> None:
        with self._registry_lock:
            self._ensure_open()
            if slot.binding.provides in self._slots:
                logger.debug("Overriding binding for '%s'", slot.binding.provides)
            self._slots[slot.binding.provides] = slot
        logger.debug(
            "Registered '%s' (lifetime=%s, dependencies=%s)",
            slot.binding.provides,
            slot.binding.lifetime.name,
            slot.binding.dependencies,
        )

    def _ensure_open(self) -> None:
        if self._closed:
            msg = "Container is closed"
            raise ContainerClosedError(msg)

    def _resolve(self, capability: Capability, *, requested_by: Capability | None) -> Any:
        self._ensure_open()
        slot = self._slots.get(capability)
        if slot is None:
            raise UnresolvedDependencyError(capability, requested_by=requested_by)

        if slot.built:
            return slot.instance
        if slot.error is not None:
            raise slot.error

        chain = _resolution_chain.get()
        if capability in chain:
            raise CircularDependencyError((*chain[chain.index(capability) :], capability))
        if requested_by is None:
            # Checked before any slot lock is taken.
            cycle = self._find_cycle(capability)
            if cycle is not None:
                raise CircularDependencyError(cycle)

        if not slot.binding.is_cached:
            return self._construct(slot.binding)

        with slot.lock:
            # Another thread may have finished construction while we waited.
            if slot.built:
                return slot.instance
            if slot.error is not None:
                raise slot.error
            try:
                instance = self._construct(slot.binding)
            except ResourceConstructionError as exc:
                slot.error = exc
                raise
            with self._registry_lock:
                closed = self._closed
                if not closed:
                    slot.instance = instance
                    slot.built = True
                    self._built.append(slot)

        if closed:
            logger.debug("Container closed while constructing '%s'", capability)
            if slot.binding.finalizer is not None:
                slot.binding.finalizer(instance)
            msg = "Container is closed"
            raise ContainerClosedError(msg)
        return instance

    def _find_cycle(self, capability: Capability) -> tuple[Capability, ...] | None:
        """Return the first dependency cycle reachable from ``capability``, if any."""
        path: list[Capability] = []
        finished: set[Capability] = set()

        def visit(current: Capability) -> tuple[Capability, ...] | None:
            if current in path:
                return (*path[path.index(current) :], current)
            if current in finished:
                return None
            slot = self._slots.get(current)
            if slot is not None and not slot.built:
                path.append(current)
                for dependency in slot.binding.dependencies:
                    cycle = visit(dependency)
                    if cycle is not None:
                        return cycle
                path.pop()
            finished.add(current)
            return None

        return visit(capability)

    def _construct(self, binding: Binding) -> Any:
        token = _resolution_chain.set((*_resolution_chain.get(), binding.provides))
        try:
            arguments = [
                self._resolve(dependency, requested_by=binding.provides)
                for dependency in binding.dependencies
            ]
            try:
                instance = binding.factory(*arguments)
            except ResourceConstructionError as exc:
                if exc.capability is None:
                    exc.capability = binding.provides
                raise
            except Exception as exc:
                msg = f"Failed to construct '{binding.provides}': {exc}"
                raise ResourceConstructionError(msg, capability=binding.provides) from exc
        finally:
            _resolution_chain.reset(token)

        logger.debug("Constructed '%s' (lifetime=%s)", binding.provides, binding.lifetime.name)
        return instance
