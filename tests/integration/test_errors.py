"""
Integration tests for error responses: consistent body shape on 4xx, 503 when the
store is not configured, 401 for a malformed identity, 500 without internal details.
"""

from unittest.mock import patch

from fastapi.testclient import TestClient

from snipsearch.api.main import app

USER_1 = {"X-User-Id": "1"}


def test_create_missing_fields_returns_422(client: TestClient) -> None:
    resp = client.post("/snippets", json={"code": "x"}, headers=USER_1)
    assert resp.status_code == 422
    data = resp.json()
    assert data["error"] == "validation_error"
    assert "detail" in data


def test_create_field_limits_enforced(client: TestClient) -> None:
    base = {"title": "t", "code": "c", "language": "python", "visibility": "private"}
    too_long_title = {**base, "title": "x" * 256}
    too_many_tags = {**base, "tags": [f"t{i}" for i in range(11)]}
    long_tag = {**base, "tags": ["x" * 51]}
    bad_visibility = {**base, "visibility": "secret"}
    empty_code = {**base, "code": ""}
    for body in (too_long_title, too_many_tags, long_tag, bad_visibility, empty_code):
        resp = client.post("/snippets", json=body, headers=USER_1)
        assert resp.status_code == 422, body
        assert resp.json()["error"] == "validation_error"


def test_non_integer_snippet_id_returns_422(client: TestClient) -> None:
    resp = client.get("/snippets/abc")
    assert resp.status_code == 422
    assert resp.json()["error"] == "validation_error"


def test_malformed_identity_returns_401(client: TestClient) -> None:
    for value in ("abc", "-4", "0"):
        resp = client.get("/snippets/1", headers={"X-User-Id": value})
        assert resp.status_code == 401
        assert resp.json()["error"] == "unauthorized"


def test_store_unavailable_returns_503() -> None:
    original = getattr(app.state, "store", None)
    try:
        app.state.store = None
        resp = TestClient(app).get("/snippets/1")
        assert resp.status_code == 503
        assert resp.json()["error"] == "store_unavailable"
    finally:
        app.state.store = original


def test_internal_exception_returns_500_without_details(client: TestClient) -> None:
    quiet_client = TestClient(app, raise_server_exceptions=False)
    with patch(
        "snipsearch.api.routes.search", side_effect=RuntimeError("secret connection string")
    ):
        resp = quiet_client.get("/snippets/search", params={"q": "sort"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "internal_error"}
