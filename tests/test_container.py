"""Tests for Container registration, resolution and teardown."""

from __future__ import annotations

import pytest

from fixturewire.container import Container
from fixturewire.exceptions import (
    CircularDependencyError,
    ConfigLoadError,
    ContainerClosedError,
    InvalidConfigurationError,
    ResourceConstructionError,
    UnresolvedDependencyError,
)
from fixturewire.providers import Lifetime


class CountingFactory:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> object:
        self.calls += 1
        return object()


class TestResolve:
    def test_singleton_factory_runs_once(self, container: Container) -> None:
        factory = CountingFactory()
        container.add_factory(factory, provides="service")

        instances = [container.resolve("service") for _ in range(10)]

        assert factory.calls == 1
        assert all(instance is instances[0] for instance in instances)

    def test_registration_is_lazy(self, container: Container) -> None:
        factory = CountingFactory()
        container.add_factory(factory, provides="service")

        assert factory.calls == 0
        assert container.is_registered("service")

    def test_transient_factory_runs_per_resolution(self, container: Container) -> None:
        factory = CountingFactory()
        container.add_factory(factory, provides="service", lifetime=Lifetime.TRANSIENT)

        first = container.resolve("service")
        second = container.resolve("service")

        assert factory.calls == 2
        assert first is not second

    def test_dependencies_are_passed_in_order(self, container: Container) -> None:
        container.add_instance("a", provides="first")
        container.add_instance("b", provides="second")
        container.add_factory(
            lambda first, second: first + second,
            provides="joined",
            dependencies=("first", "second"),
        )

        assert container.resolve("joined") == "ab"

    def test_instance_is_returned_as_is(self, container: Container) -> None:
        instance = object()
        container.add_instance(instance, provides="instance")

        assert container.resolve("instance") is instance

    def test_reregistration_overrides_binding(self, container: Container) -> None:
        container.add_instance("old", provides="value")
        container.resolve("value")

        container.add_instance("new", provides="value")

        assert container.resolve("value") == "new"


class TestResolveErrors:
    def test_unregistered_capability(self, container: Container) -> None:
        with pytest.raises(UnresolvedDependencyError) as exc_info:
            container.resolve("database resource")

        assert exc_info.value.capability == "database resource"
        assert exc_info.value.requested_by is None
        assert "is not registered" in str(exc_info.value)

    def test_unregistered_dependency_names_requester(self, container: Container) -> None:
        container.add_factory(
            lambda configuration: configuration,
            provides="db",
            dependencies=("configuration",),
        )

        with pytest.raises(UnresolvedDependencyError) as exc_info:
            container.resolve("db")

        assert exc_info.value.capability == "configuration"
        assert exc_info.value.requested_by == "db"

    def test_factory_error_is_wrapped(self, container: Container) -> None:
        def factory() -> object:
            msg = "boom"
            raise ValueError(msg)

        container.add_factory(factory, provides="service")

        with pytest.raises(ResourceConstructionError) as exc_info:
            container.resolve("service")

        assert exc_info.value.capability == "service"
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_invalid_configuration_propagates_unwrapped(self, container: Container) -> None:
        def factory() -> object:
            raise InvalidConfigurationError("key", "bad value")

        container.add_factory(factory, provides="service")

        with pytest.raises(InvalidConfigurationError) as exc_info:
            container.resolve("service")

        assert exc_info.value.capability == "service"

    def test_failed_singleton_is_not_retried(self, container: Container) -> None:
        calls = 0

        def factory() -> object:
            nonlocal calls
            calls += 1
            raise InvalidConfigurationError("key", "bad value")

        container.add_factory(factory, provides="service")

        errors = []
        for _ in range(3):
            with pytest.raises(InvalidConfigurationError) as exc_info:
                container.resolve("service")
            errors.append(exc_info.value)

        assert calls == 1
        assert all(error is errors[0] for error in errors)

    def test_library_error_from_factory_is_wrapped_and_cached(
        self,
        container: Container,
    ) -> None:
        calls = 0

        def factory() -> object:
            nonlocal calls
            calls += 1
            raise ConfigLoadError("secondary.json", "missing")

        container.add_factory(factory, provides="service")

        errors = []
        for _ in range(3):
            with pytest.raises(ResourceConstructionError) as exc_info:
                container.resolve("service")
            errors.append(exc_info.value)

        assert calls == 1
        assert errors[0].capability == "service"
        assert isinstance(errors[0].__cause__, ConfigLoadError)
        assert all(error is errors[0] for error in errors)

    def test_circular_dependency(self, container: Container) -> None:
        container.add_factory(lambda b: b, provides="a", dependencies=("b",))
        container.add_factory(lambda a: a, provides="b", dependencies=("a",))

        with pytest.raises(CircularDependencyError) as exc_info:
            container.resolve("a")

        assert exc_info.value.chain == ("a", "b", "a")


class TestClose:
    def test_finalizers_run_in_reverse_construction_order(self, container: Container) -> None:
        closed: list[str] = []
        container.add_factory(lambda: "first", provides="first", finalizer=closed.append)
        container.add_factory(
            lambda first: "second",
            provides="second",
            dependencies=("first",),
            finalizer=closed.append,
        )
        container.resolve("second")

        container.close()

        assert closed == ["second", "first"]

    def test_unconstructed_bindings_are_not_finalized(self, container: Container) -> None:
        closed: list[str] = []
        container.add_factory(lambda: "value", provides="value", finalizer=closed.append)

        container.close()

        assert closed == []

    def test_instances_are_not_finalized(self, container: Container) -> None:
        container.add_instance("value", provides="value")
        container.resolve("value")

        container.close()

        assert container.closed

    def test_close_is_idempotent(self, container: Container) -> None:
        closed: list[str] = []
        container.add_factory(lambda: "value", provides="value", finalizer=closed.append)
        container.resolve("value")

        container.close()
        container.close()

        assert closed == ["value"]

    def test_resolve_after_close_raises(self, container: Container) -> None:
        container.add_instance("value", provides="value")
        container.close()

        with pytest.raises(ContainerClosedError):
            container.resolve("value")
        with pytest.raises(ContainerClosedError):
            container.add_instance("value", provides="value")

    def test_context_manager_closes(self) -> None:
        closed: list[str] = []
        with Container() as container:
            container.add_factory(lambda: "value", provides="value", finalizer=closed.append)
            container.resolve("value")

        assert closed == ["value"]
        assert container.closed
