"""HTTP-level tests for the customer endpoints."""
import uuid

import pytest

from app.crm import create_app
from app.crm.errors import StorageError
from app.crm.models import Base
from app.crm.modules.customers import repository as repository_module
from app.crm.modules.customers import service as service_module

JOHN = {
    "firstName": "John",
    "lastName": "Doe",
    "email": "john@example.com",
    "phoneNumber": "+1234567890",
}

JANE = {
    "firstName": "Jane",
    "lastName": "Smith",
    "email": "jane.smith@example.com",
    "phoneNumber": "+1 (987) 654-3210",
    "address": "1 Elm St",
    "city": "Austin",
    "state": "TX",
    "country": "USA",
}


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.delenv("API_PREFIX", raising=False)

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)
    return app.test_client()


def _create(client, payload):
    r = client.post("/api/customer", json=payload)
    assert r.status_code == 201, r.json
    return r.json


# ---------- Create / fetch ----------
def test_create_then_fetch_roundtrip(client):
    created = _create(client, JOHN)
    assert uuid.UUID(created["id"])
    assert created["createdAt"].endswith("Z")
    for key, value in JOHN.items():
        assert created[key] == value
    assert created["address"] is None
    assert created["city"] is None

    r = client.get(f"/api/customer/{created['id']}")
    assert r.status_code == 200
    assert r.json == created


def test_create_duplicate_email_conflicts(client):
    _create(client, JOHN)
    r = client.post("/api/customer", json={**JOHN, "firstName": "Johnny"})
    assert r.status_code == 409
    assert r.json["error"] == "Customer with this email already exists"

    r = client.get("/api/customer")
    assert len(r.json) == 1
    assert r.json[0]["firstName"] == "John"


def test_create_missing_fields(client):
    r = client.post("/api/customer", json={"firstName": "John"})
    assert r.status_code == 400
    fields = r.json["fields"]
    assert set(fields) == {"lastName", "email", "phoneNumber"}


def test_create_invalid_email_and_phone(client):
    r = client.post("/api/customer", json={**JOHN, "email": "not-an-email", "phoneNumber": "call me"})
    assert r.status_code == 400
    assert "email" in r.json["fields"]
    assert "phoneNumber" in r.json["fields"]


def test_create_rejects_misspelled_first_name(client):
    payload = {k: v for k, v in JOHN.items() if k != "firstName"}
    payload["fristName"] = "John"
    r = client.post("/api/customer", json=payload)
    assert r.status_code == 400
    assert r.json["fields"]["fristName"] == "Unknown field."
    assert "firstName" in r.json["fields"]


def test_create_rejects_client_supplied_id(client):
    r = client.post("/api/customer", json={**JOHN, "id": str(uuid.uuid4())})
    assert r.status_code == 400
    assert "id" in r.json["fields"]


def test_create_requires_json_body(client):
    r = client.post("/api/customer", data="firstName=John", content_type="application/x-www-form-urlencoded")
    assert r.status_code == 400
    assert "error" in r.json


def test_create_rejects_json_array(client):
    r = client.post("/api/customer", json=[JOHN])
    assert r.status_code == 400


# ---------- List / search ----------
def test_list_empty(client):
    r = client.get("/api/customer")
    assert r.status_code == 200
    assert r.json == []


def test_list_and_search(client):
    _create(client, JOHN)
    _create(client, JANE)
    _create(client, {"firstName": "Bob", "lastName": "Johnson", "email": "bob@example.com", "phoneNumber": "5551234567"})

    r = client.get("/api/customer")
    assert len(r.json) == 3

    r = client.get("/api/customer", query_string={"search": "JOHN"})
    assert r.status_code == 200
    assert sorted(c["firstName"] for c in r.json) == ["Bob", "John"]

    r = client.get("/api/customer", query_string={"search": "smith@"})
    assert [c["firstName"] for c in r.json] == ["Jane"]


def test_search_whitespace_returns_empty(client):
    _create(client, JOHN)
    r = client.get("/api/customer", query_string={"search": "   "})
    assert r.status_code == 200
    assert r.json == []


def test_search_empty_lists_all(client):
    _create(client, JOHN)
    r = client.get("/api/customer?search=")
    assert len(r.json) == 1


# ---------- Detail ----------
def test_get_unknown_id(client):
    r = client.get(f"/api/customer/{uuid.uuid4()}")
    assert r.status_code == 404
    assert r.json["error"] == "Customer not found"


def test_get_malformed_id(client):
    r = client.get("/api/customer/invalid-id")
    assert r.status_code == 404


# ---------- Update ----------
def test_patch_changes_only_supplied_fields(client):
    created = _create(client, JANE)
    r = client.patch(f"/api/customer/{created['id']}", json={"city": "Dallas"})
    assert r.status_code == 200
    assert r.json["city"] == "Dallas"
    for key in ("firstName", "lastName", "email", "phoneNumber", "address", "state", "country", "createdAt", "id"):
        assert r.json[key] == created[key]


def test_put_accepts_partial_body(client):
    created = _create(client, JOHN)
    r = client.put(f"/api/customer/{created['id']}", json={"firstName": "Jane", "lastName": "Smith"})
    assert r.status_code == 200
    assert r.json["firstName"] == "Jane"
    assert r.json["email"] == JOHN["email"]


def test_update_clears_optional_field_with_null(client):
    created = _create(client, JANE)
    r = client.patch(f"/api/customer/{created['id']}", json={"address": None})
    assert r.status_code == 200
    assert r.json["address"] is None


def test_update_rejects_null_required_field(client):
    created = _create(client, JOHN)
    r = client.patch(f"/api/customer/{created['id']}", json={"lastName": None})
    assert r.status_code == 400
    assert "lastName" in r.json["fields"]


def test_update_to_other_customers_email_conflicts(client):
    john = _create(client, JOHN)
    jane = _create(client, JANE)
    r = client.put(f"/api/customer/{john['id']}", json={"email": jane["email"]})
    assert r.status_code == 409

    r = client.get(f"/api/customer/{john['id']}")
    assert r.json["email"] == JOHN["email"]


def test_update_to_own_email_succeeds(client):
    john = _create(client, JOHN)
    r = client.put(f"/api/customer/{john['id']}", json={"email": JOHN["email"], "city": "Boston"})
    assert r.status_code == 200
    assert r.json["city"] == "Boston"


def test_update_unknown_id(client):
    r = client.patch(f"/api/customer/{uuid.uuid4()}", json={"city": "Dallas"})
    assert r.status_code == 404


# ---------- Delete ----------
def test_delete_then_fetch_404(client):
    created = _create(client, JOHN)
    r = client.delete(f"/api/customer/{created['id']}")
    assert r.status_code == 204
    assert r.data == b""

    r = client.get(f"/api/customer/{created['id']}")
    assert r.status_code == 404

    r = client.delete(f"/api/customer/{created['id']}")
    assert r.status_code == 404


def test_delete_frees_email_for_reuse(client):
    created = _create(client, JOHN)
    client.delete(f"/api/customer/{created['id']}")
    again = _create(client, JOHN)
    assert again["id"] != created["id"]


# ---------- Failures ----------
def test_unexpected_error_is_generic_500(client, monkeypatch):
    def boom(self, search=None):
        raise RuntimeError("secret internals")

    monkeypatch.setattr(service_module.CustomerService, "find_all", boom)
    r = client.get("/api/customer")
    assert r.status_code == 500
    assert r.json == {"error": "Internal server error"}
    assert b"secret internals" not in r.data


def test_storage_error_is_generic_500(client, monkeypatch):
    def unavailable(self):
        raise StorageError("Failed to fetch customers: connection refused")

    monkeypatch.setattr(repository_module.CustomerRepository, "get_all_customers", unavailable)
    r = client.get("/api/customer")
    assert r.status_code == 500
    assert r.json == {"error": "Internal server error"}


def test_custom_api_prefix(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("API_PREFIX", "v2/")

    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
    c = app.test_client()
    assert c.get("/v2/customer").status_code == 200
    assert c.get("/api/customer").status_code == 404
