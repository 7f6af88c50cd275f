# Test type: API integration test
# Validation: category create/list/get/rename/delete flows and session isolation
# Command: pytest -q test/test_categories.py

TEST_CATEGORY_ID = 66828978
TEST_CATEGORY_NAME = "Test Category"


def _create(client, headers, category_id=TEST_CATEGORY_ID, name=TEST_CATEGORY_NAME):
    return client.post(
        "/api/v1/categories",
        json={"id": category_id, "name": name},
        headers=headers,
    )


def test_new_session_has_no_categories(client, session_headers):
    response = client.get("/api/v1/categories", headers=session_headers)
    assert response.status_code == 200
    assert response.json() == []


def test_get_created_category_by_id(client, session_headers):
    _create(client, session_headers)
    response = client.get(f"/api/v1/categories/{TEST_CATEGORY_ID}", headers=session_headers)
    assert response.status_code == 200
    assert response.json()["name"] == TEST_CATEGORY_NAME


def test_list_keeps_insertion_order(client, session_headers):
    _create(client, session_headers, category_id=3, name="rent")
    _create(client, session_headers, category_id=1, name="food")
    _create(client, session_headers, category_id=2, name="work")
    names = [row["name"] for row in client.get("/api/v1/categories", headers=session_headers).json()]
    assert names == ["rent", "food", "work"]


def test_invalid_body_returns_405(client, session_headers):
    response = client.post(
        "/api/v1/categories",
        json={"invalid": TEST_CATEGORY_ID, "name": TEST_CATEGORY_NAME},
        headers=session_headers,
    )
    assert response.status_code == 405
    assert client.get("/api/v1/categories", headers=session_headers).json() == []


def test_duplicate_id_returns_409_and_keeps_original(client, session_headers):
    _create(client, session_headers)
    response = _create(client, session_headers, name="Other")
    assert response.status_code == 409
    fetched = client.get(f"/api/v1/categories/{TEST_CATEGORY_ID}", headers=session_headers)
    assert fetched.json()["name"] == TEST_CATEGORY_NAME


def test_unknown_category_returns_404(client, session_headers):
    response = client.get("/api/v1/categories/12345", headers=session_headers)
    assert response.status_code == 404


def test_rename_category(client, session_headers):
    _create(client, session_headers)
    _create(client, session_headers, category_id=7, name="later")
    response = client.put(
        f"/api/v1/categories/{TEST_CATEGORY_ID}",
        json={"id": 999, "name": "Renamed"},
        headers=session_headers,
    )
    assert response.status_code == 200
    assert response.json() == {"id": TEST_CATEGORY_ID, "name": "Renamed"}
    names = [row["name"] for row in client.get("/api/v1/categories", headers=session_headers).json()]
    assert names == ["Renamed", "later"]


def test_rename_unknown_category_returns_404(client, session_headers):
    response = client.put("/api/v1/categories/5", json={"name": "x"}, headers=session_headers)
    assert response.status_code == 404


def test_delete_then_get_returns_404(client, session_headers):
    _create(client, session_headers)
    deleted = client.delete(f"/api/v1/categories/{TEST_CATEGORY_ID}", headers=session_headers)
    assert deleted.status_code == 204
    assert deleted.content == b""
    response = client.get(f"/api/v1/categories/{TEST_CATEGORY_ID}", headers=session_headers)
    assert response.status_code == 404


def test_delete_unknown_category_returns_404(client, session_headers):
    response = client.delete("/api/v1/categories/1", headers=session_headers)
    assert response.status_code == 404


def test_categories_are_isolated_between_sessions(client, session_headers):
    _create(client, session_headers)
    other = {"X-session-ID": str(client.post("/api/v1/sessions").json()["session_id"])}
    assert client.get("/api/v1/categories", headers=other).json() == []
    response = client.get(f"/api/v1/categories/{TEST_CATEGORY_ID}", headers=other)
    assert response.status_code == 404
    assert _create(client, other).status_code == 201
