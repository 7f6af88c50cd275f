import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ["DB_PROVIDER"] = "memory"
os.environ["RATE_LIMIT_PER_MIN"] = "0"

from ledger.main import app


@pytest.fixture()
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def session_headers(client):
    response = client.post("/api/v1/sessions")
    assert response.status_code == 200
    return {"X-session-ID": str(response.json()["session_id"])}


@pytest.fixture()
def transaction_payload():
    return {
        "id": 68796973,
        "date": "1889-04-20T19:45:04.030Z",
        "amount": 0,
        "external-iban": "string",
        "type": "deposit",
        "category": {"id": 0, "name": "string"},
    }


@pytest.fixture()
def second_transaction_payload():
    return {
        "id": 23890471,
        "date": "1889-04-20T19:45:04.030Z",
        "amount": 10,
        "external-iban": "strings",
        "type": "withdrawal",
        "category": {"id": 1, "name": "work"},
    }
