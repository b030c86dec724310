import json, pathlib
import pytest
from fastapi.testclient import TestClient
from bpjs_adapter import api
from bpjs_adapter.client import BPJSClient
from bpjs_adapter.config import BPJSConfig
from bpjs_adapter.store import InMemoryAppointmentSepStore

FIX = pathlib.Path(__file__).parent / "fixtures"
BASE = "https://apijkn-dev.bpjs-kesehatan.go.id"
API_KEY = "test-key"


@pytest.fixture
def load_fixture():
    return lambda name: json.loads((FIX / name).read_text())


@pytest.fixture
def gateway_config():
    return BPJSConfig(cons_id="1234", secret_key="s3cr3t", user_key="u-key", base_url=f"{BASE}/vclaim-rest")


@pytest.fixture
def store():
    return InMemoryAppointmentSepStore()


@pytest.fixture
def api_client(monkeypatch, gateway_config, store):
    monkeypatch.setattr(api, "CLINIC_API_KEY", API_KEY)
    api.app.dependency_overrides[api.get_bpjs_client] = lambda: BPJSClient(gateway_config)
    api.app.dependency_overrides[api.get_store] = lambda: store
    with TestClient(api.app, headers={"Authorization": f"Bearer {API_KEY}"}) as client:
        yield client
    api.app.dependency_overrides.clear()
