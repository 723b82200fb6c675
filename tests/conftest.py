import pytest
from fastapi.testclient import TestClient


@pytest.fixture()
def db_path(tmp_path, monkeypatch):
    path = str(tmp_path / "pagediff.sqlite3")
    monkeypatch.setattr("pagediff.storage.db.DB_PATH", path)
    return path


@pytest.fixture()
def client(db_path, monkeypatch):
    from pagediff.app import main

    monkeypatch.setattr(main.settings, "retention_enabled", False)
    with TestClient(main.app) as c:
        yield c
