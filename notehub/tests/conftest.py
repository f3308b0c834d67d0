# notehub/tests/conftest.py
import os

import pytest

# Pick the storage backend BEFORE importing the app: the module-level app reads
# settings at import time.
os.environ["STORAGE_TYPE"] = "memory"
os.environ.setdefault("LOG_LEVEL", "WARNING")

# Now import the app and repositories
from notehub.db import create_db_engine  # noqa: E402
from notehub.main import app  # noqa: E402
from notehub.repositories.memory import InMemoryNoteRepository  # noqa: E402
from notehub.repositories.sql import SqlNoteRepository  # noqa: E402
from notehub.routers.notes import get_repository  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


def _sqlite_repository(tmp_path) -> SqlNoteRepository:
    # one SQLite file per test; each worker thread gets its own connection
    engine = create_db_engine(f"sqlite:///{tmp_path / 'notes.db'}")
    repository = SqlNoteRepository(engine)
    repository.initialize()
    return repository


@pytest.fixture(params=["memory", "sql"])
async def repository(request, tmp_path):
    """
    The same behaviour battery runs against both backends.
    Only usable from tests marked with anyio.
    """
    if request.param == "memory":
        repo = InMemoryNoteRepository()
    else:
        repo = _sqlite_repository(tmp_path)
    yield repo
    await repo.close()


@pytest.fixture
async def sql_repository(tmp_path):
    repo = _sqlite_repository(tmp_path)
    yield repo
    await repo.close()


@pytest.fixture
async def memory_repository():
    repo = InMemoryNoteRepository()
    yield repo
    await repo.close()


@pytest.fixture(scope="function")
def api_repository():
    """Fresh repository behind the HTTP API for every test."""
    return InMemoryNoteRepository()


@pytest.fixture(scope="function", autouse=True)
def override_repository(api_repository):
    """
    Make FastAPI use the per-test repository for every request.
    """
    app.dependency_overrides[get_repository] = lambda: api_repository
    yield
    app.dependency_overrides.clear()


@pytest.fixture()
def client():
    """
    FastAPI TestClient bound to the overridden repository.
    """
    from fastapi.testclient import TestClient

    with TestClient(app) as c:
        yield c
