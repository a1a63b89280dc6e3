# tests/conftest.py
import pytest

from continuity.catalog import create_database


def sqlite_url(path) -> str:
    return "sqlite:///" + path.as_posix()


@pytest.fixture
def database(tmp_path):
    """An initialized database backed by a file under tmp_path."""
    db = create_database(url=sqlite_url(tmp_path / "continuity.db"), storage_root=tmp_path / "storage")
    db.initialize()
    yield db
    db.shutdown()


@pytest.fixture
def client(database):
    from fastapi.testclient import TestClient

    from continuity.main import create_app

    with TestClient(create_app(database)) as c:
        yield c
