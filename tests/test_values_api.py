"""HTTP tests for the `/api/values` routes."""

import asyncio
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from valuestore.main import CollapseLeadingSlashes, create_app
from valuestore.settings import Settings
from valuestore.store import ValueStore


def _create(client, headers, account="acme", project="web", values=None):
    resp = client.post(
        "/api/values",
        json={"account": account, "project": project, "values": values or {"a": 1}},
        headers=headers,
    )
    assert resp.status_code == 200
    return resp.json()


def _record_id(client, account="acme", project="web"):
    # POST responses do not carry the id
    db = client.app.state.db.session()
    try:
        return ValueStore(db).fetch(account, project).id
    finally:
        db.close()


def test_get_requires_token(client) -> None:
    resp = client.get("/api/values", params={"account": "acme", "project": "web"})
    assert resp.status_code == 401
    assert resp.json() == {"status": "error", "message": "Unauthorized"}


def test_wrong_token_rejected(client) -> None:
    resp = client.post(
        "/api/values",
        json={"account": "acme", "project": "web", "values": {"a": 1}},
        headers={"Authorization": "Bearer nope"},
    )
    assert resp.status_code == 401


def test_auth_checked_before_params(client) -> None:
    assert client.get("/api/values").status_code == 401


def test_missing_token_config_fails_closed() -> None:
    app = create_app(Settings(database_url="sqlite://", auth_token=None))
    with TestClient(app) as client:
        resp = client.get(
            "/api/values",
            params={"account": "acme", "project": "web"},
            headers={"Authorization": "Bearer "},
        )
    assert resp.status_code == 401


def test_get_missing_params(client, auth_headers) -> None:
    resp = client.get("/api/values", params={"account": "acme"}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Missing required parameters: account and project"


def test_get_unknown_pair_returns_empty_values(client, auth_headers) -> None:
    resp = client.get("/api/values", params={"account": "acme", "project": "web"}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == {
        "status": "success",
        "message": "Values retrieved successfully",
        "data": {"account": "acme", "project": "web", "values": {}},
    }


def test_post_then_get_round_trip(client, auth_headers) -> None:
    body = _create(client, auth_headers, values={"a": 1})
    assert body["message"] == "Values saved successfully"
    assert body["data"] == {"account": "acme", "project": "web", "values": {"a": 1}}

    resp = client.get("/api/values", params={"account": "acme", "project": "web"}, headers=auth_headers)
    assert resp.json()["data"]["values"] == {"a": 1}


def test_repeated_post_merges(client, auth_headers) -> None:
    _create(client, auth_headers, values={"a": 1})
    body = _create(client, auth_headers, values={"b": 2})
    assert body["message"] == "Values updated successfully"

    resp = client.get("/api/values", params={"account": "acme", "project": "web"}, headers=auth_headers)
    assert resp.json()["data"]["values"] == {"a": 1, "b": 2}


def test_post_null_deletes_nested_field(client, auth_headers) -> None:
    _create(client, auth_headers, values={"a": {"x": 1, "y": 2}, "tags": [1, 2, 3]})
    body = _create(client, auth_headers, values={"a": {"x": None}, "tags": [9]})

    assert body["data"]["values"] == {"a": {"y": 2}, "tags": [9]}


@pytest.mark.parametrize(
    "payload",
    [
        {"project": "web", "values": {"a": 1}},
        {"account": "acme", "values": {"a": 1}},
        {"account": "acme", "project": "web"},
        {"account": "", "project": "web", "values": {"a": 1}},
    ],
)
def test_post_missing_fields(client, auth_headers, payload) -> None:
    resp = client.post("/api/values", json=payload, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Missing required fields: account, project, or values"


def test_post_malformed_values(client, auth_headers) -> None:
    resp = client.post(
        "/api/values",
        json={"account": "acme", "project": "web", "values": [1, 2]},
        headers=auth_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["status"] == "error"


def test_get_by_id(client, auth_headers) -> None:
    _create(client, auth_headers, values={"a": 1})
    record_id = _record_id(client)

    resp = client.get(f"/api/values/{record_id}")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"id": record_id, "account": "acme", "project": "web", "values": {"a": 1}}


def test_invalid_id_format(client) -> None:
    assert client.get("/api/values/not-an-id").status_code == 400
    assert client.put("/api/values/not-an-id", json={"values": {"a": 1}}).status_code == 400
    resp = client.delete("/api/values/not-an-id")
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid ID format"


def test_unknown_id_not_found(client) -> None:
    resp = client.get(f"/api/values/{uuid.uuid4().hex}")
    assert resp.status_code == 404
    assert resp.json() == {"status": "error", "message": "Value not found"}


def test_put_merges_by_id(client, auth_headers) -> None:
    _create(client, auth_headers, values={"a": {"x": 1}, "b": 1})
    record_id = _record_id(client)

    resp = client.put(f"/api/values/{record_id}", json={"values": {"a": {"y": 2}, "b": None}})
    assert resp.status_code == 200
    assert resp.json()["data"]["values"] == {"a": {"x": 1, "y": 2}}

    resp = client.get("/api/values", params={"account": "acme", "project": "web"}, headers=auth_headers)
    assert resp.json()["data"]["values"] == {"a": {"x": 1, "y": 2}}


def test_put_without_values(client, auth_headers) -> None:
    _create(client, auth_headers)
    record_id = _record_id(client)

    resp = client.put(f"/api/values/{record_id}", json={})
    assert resp.status_code == 400
    assert resp.json()["message"] == "No values provided for update"


def test_delete_is_terminal(client, auth_headers) -> None:
    _create(client, auth_headers)
    record_id = _record_id(client)

    resp = client.delete(f"/api/values/{record_id}")
    assert resp.status_code == 200
    assert resp.json() == {"status": "success", "message": "Value deleted successfully"}

    assert client.get(f"/api/values/{record_id}").status_code == 404
    assert client.put(f"/api/values/{record_id}", json={"values": {"a": 2}}).status_code == 404
    assert client.delete(f"/api/values/{record_id}").status_code == 404


def test_double_slash_path_is_normalized() -> None:
    seen = {}

    async def app(scope, receive, send):
        seen["path"] = scope["path"]

    asyncio.run(CollapseLeadingSlashes(app)({"type": "http", "path": "//api/values"}, None, None))
    assert seen["path"] == "/api/values"


def test_unknown_route_uses_envelope(client) -> None:
    resp = client.get("/nope")
    assert resp.status_code == 404
    assert resp.json() == {"status": "error", "message": "Not found"}


def test_storage_error_is_generic_500(client, auth_headers, monkeypatch) -> None:
    def broken_fetch(self, account, project):
        raise OperationalError("SELECT 1", {}, Exception("password=hunter2 host=db.internal"))

    monkeypatch.setattr(ValueStore, "fetch", broken_fetch)

    resp = client.get("/api/values", params={"account": "acme", "project": "web"}, headers=auth_headers)

    assert resp.status_code == 500
    assert resp.json() == {"status": "error", "message": "Failed to retrieve values"}
    assert "hunter2" not in resp.text
    assert "db.internal" not in resp.text


def test_long_account_and_project_round_trip(client, auth_headers) -> None:
    account, project = "a" * 300, "p" * 300
    body = _create(client, auth_headers, account=account, project=project, values={"a": 1})
    assert body["data"]["account"] == account

    resp = client.get("/api/values", params={"account": account, "project": project}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["values"] == {"a": 1}
