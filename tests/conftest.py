"""Shared pytest fixtures for fixturewire tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from fixturewire.config import ConfigurationSnapshot
from fixturewire.container import Container
from fixturewire.database import EXPECTED_CONNECTION_STRING

pytest_plugins = ["pytester", "fixturewire.pytest_plugin"]


@pytest.fixture()
def write_config(tmp_path: Path) -> Callable[..., Path]:
    """Write a JSON configuration document into ``tmp_path`` and return its path."""

    def _write(document: Any, name: str = "appsettings.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(document), encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def valid_config_path(write_config: Callable[..., Path]) -> Path:
    return write_config({"ConnectionStrings": {"sql-database": EXPECTED_CONNECTION_STRING}})


@pytest.fixture()
def invalid_config_path(write_config: Callable[..., Path]) -> Path:
    return write_config({"ConnectionStrings": {"sql-database": "wrong"}})


@pytest.fixture()
def valid_configuration() -> ConfigurationSnapshot:
    return ConfigurationSnapshot.from_document(
        {"ConnectionStrings": {"sql-database": EXPECTED_CONNECTION_STRING}},
    )


@pytest.fixture()
def container() -> Container:
    """Empty container with the default thread lock mode."""
    return Container()
