"""Pytest integration: named collections sharing one container.

Enable it with ``pytest_plugins = ["fixturewire.pytest_plugin"]`` in the root
``conftest.py``. Group test classes with ``@pytest.mark.collection("name")``;
every class of a collection receives the same ``class_setup.db`` instance.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

from fixturewire.database import DatabaseResource
from fixturewire.fixtures import ClassSetup, CollectionManager, CollectionSetup
from fixturewire.output import OutputHelper
from fixturewire.settings import HarnessSettings

COLLECTION_MARKER = "collection"
CONFIG_INI_OPTION = "fixturewire_config"
OUTPUT_SECTION_KEY = "fixturewire output"
_FIXTUREWIRE_OUTPUT_ATTR = "_fixturewire_output"


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addini(
        CONFIG_INI_OPTION,
        help="Configuration document used to build collection containers.",
        default="",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        f"{COLLECTION_MARKER}(name, config=None): share one collection container "
        "between the marked test classes.",
    )


@pytest.fixture(scope="session")
def fixturewire_settings() -> HarnessSettings:
    """Harness settings read from ``FIXTUREWIRE_*`` environment variables."""
    return HarnessSettings()


@pytest.fixture(scope="session")
def fixturewire_collections(
    fixturewire_settings: HarnessSettings,
) -> Iterator[CollectionManager]:
    """Session-wide cache of collection setups, closed when the session ends."""
    manager = CollectionManager(lock_mode=fixturewire_settings.lock_mode)
    yield manager
    manager.close()


@pytest.fixture(scope="class")
def collection_setup(
    request: pytest.FixtureRequest,
    fixturewire_settings: HarnessSettings,
    fixturewire_collections: CollectionManager,
) -> CollectionSetup:
    """Return the collection fixture for the requesting test class.

    The collection name and configuration come from the closest ``collection``
    marker. Unmarked tests join ``HarnessSettings.default_collection``.

    Raises:
        ConfigLoadError: If the configuration cannot be loaded.

    """
    name, config_source = _collection_definition(
        request.node,
        request.config,
        fixturewire_settings,
    )
    return fixturewire_collections.get(name, config_source)


@pytest.fixture(scope="class")
def class_setup(collection_setup: CollectionSetup) -> ClassSetup:
    """Resolve the shared database once per test class."""
    return ClassSetup(collection_setup)


@pytest.fixture()
def db(class_setup: ClassSetup) -> DatabaseResource:
    """Shared database of the requesting test class."""
    return class_setup.db


@pytest.fixture()
def output(request: pytest.FixtureRequest) -> OutputHelper:
    """Per-test output channel attached to the report after the call phase."""
    helper = OutputHelper()
    setattr(request.node, _FIXTUREWIRE_OUTPUT_ATTR, helper)
    return helper


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_call(item: pytest.Item) -> Iterator[None]:
    """Copy the test's output channel into the call report sections."""
    try:
        yield
    finally:
        helper: OutputHelper | None = getattr(item, _FIXTUREWIRE_OUTPUT_ATTR, None)
        if helper is not None and helper.lines:
            item.add_report_section("call", OUTPUT_SECTION_KEY, helper.getvalue())


def _collection_definition(
    node: Any,
    config: pytest.Config,
    settings: HarnessSettings,
) -> tuple[str, Path]:
    marker = node.get_closest_marker(COLLECTION_MARKER)
    name = settings.default_collection
    marker_config = None
    if marker is not None:
        name = marker.args[0] if marker.args else marker.kwargs.get("name", name)
        marker_config = marker.kwargs.get("config")

    if marker_config is not None:
        source = Path(marker_config)
    elif ini_value := config.getini(CONFIG_INI_OPTION):
        source = Path(ini_value)
    else:
        source = settings.config_path

    if not source.is_absolute():
        source = config.rootpath / source
    return name, source
