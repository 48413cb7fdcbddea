import pytest
from fastapi.testclient import TestClient

from vocab_api import store


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Point the store at an empty temp directory."""
    monkeypatch.setattr(store, "DATA_DIR", tmp_path)
    return tmp_path


@pytest.fixture
def client(data_dir):
    from vocab_api.main import app

    return TestClient(app)
