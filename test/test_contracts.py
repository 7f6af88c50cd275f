# Test type: API contract and integration test
# Validation: response shapes, field order and status codes for sessions/categories/transactions/performance
# Command: pytest -q test/test_contracts.py


def test_session_contract(client):
    response = client.post("/api/v1/sessions")
    assert response.status_code == 200
    body = response.json()
    assert set(body.keys()) == {"session_id"}
    assert isinstance(body["session_id"], int)
    assert 0 < body["session_id"] < 2**31


def test_sessions_are_unique(client):
    first = client.post("/api/v1/sessions").json()["session_id"]
    second = client.post("/api/v1/sessions").json()["session_id"]
    assert first != second


def test_category_contract(client, session_headers):
    response = client.post(
        "/api/v1/categories",
        json={"id": 66828978, "name": "Test Category"},
        headers=session_headers,
    )
    assert response.status_code == 201
    assert response.json() == {"id": 66828978, "name": "Test Category"}

    listing = client.get("/api/v1/categories", headers=session_headers)
    assert listing.status_code == 200
    assert listing.json() == [{"id": 66828978, "name": "Test Category"}]


def test_transaction_contract_preserves_field_order(client, session_headers, transaction_payload):
    response = client.post("/api/v1/transactions", json=transaction_payload, headers=session_headers)
    assert response.status_code == 201
    assert list(response.json().keys()) == [
        "id",
        "date",
        "amount",
        "external-iban",
        "type",
        "category",
    ]
    assert response.json() == transaction_payload


def test_post_then_get_returns_identical_document(client, session_headers, transaction_payload):
    created = client.post("/api/v1/transactions", json=transaction_payload, headers=session_headers)
    fetched = client.get("/api/v1/transactions/68796973", headers=session_headers)
    assert fetched.status_code == 200
    assert fetched.headers["content-type"].startswith("application/json")
    assert fetched.content == created.content


def test_integer_and_float_amounts_are_echoed(client, session_headers, transaction_payload):
    client.post("/api/v1/transactions", json=transaction_payload, headers=session_headers)
    fractional = {**transaction_payload, "id": 2, "amount": 12.75}
    client.post("/api/v1/transactions", json=fractional, headers=session_headers)

    rows = client.get("/api/v1/transactions", headers=session_headers).json()
    assert rows[0]["amount"] == 0
    assert isinstance(rows[0]["amount"], int)
    assert rows[1]["amount"] == 12.75


def test_null_category_is_accepted(client, session_headers, transaction_payload):
    payload = {**transaction_payload, "category": None}
    response = client.post("/api/v1/transactions", json=payload, headers=session_headers)
    assert response.status_code == 201
    assert response.json()["category"] is None


def test_security_headers_present(client, session_headers):
    response = client.get("/api/v1/categories", headers=session_headers)
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["Cache-Control"] == "no-store"


def test_performance_contract(client, session_headers):
    client.get("/api/v1/categories", headers=session_headers)
    response = client.get("/api/v1/performance")
    assert response.status_code == 200
    body = response.json()
    assert set(body.keys()) == {"time", "memory", "threads", "requestsServed", "endpointStats"}
    endpoints = {row["endpoint"] for row in body["endpointStats"]}
    assert {"sessions:create", "categories:list"} <= endpoints
    for row in body["endpointStats"]:
        assert set(row.keys()) == {"endpoint", "count", "avgMs", "maxMs", "errorCount"}


def test_performance_counts_errors(client, session_headers):
    client.get("/api/v1/transactions/404", headers=session_headers)
    body = client.get("/api/v1/performance").json()
    stats = {row["endpoint"]: row for row in body["endpointStats"]}
    assert stats["transactions:get"]["errorCount"] == 1
