from collections.abc import Generator
from pathlib import Path

import pytest

from dbtrans.core.registry import ConnectionRegistry
from dbtrans.engines.sql import Database


@pytest.fixture()
def registry() -> Generator[ConnectionRegistry, None, None]:
    reg = ConnectionRegistry()
    yield reg
    # Registries never drop entries; close pools so sqlite files are released.
    for key in reg.drivers():
        reg.get(key).close()


@pytest.fixture()
def db(registry: ConnectionRegistry) -> Database:
    """sqlite3 in-memory database opened with a pool of 5."""
    return registry.open("sqlite3", ":memory:", 5)


@pytest.fixture()
def db_file(tmp_path: Path) -> str:
    return str(tmp_path / "test.db")
