"""HTTP-level tests for the products router."""

import pytest
from fastapi.testclient import TestClient

from config import settings
from database import get_db
from main import app
from utils.ids import PRODUCT_ID_PATTERN


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def create_widget(client, png_bytes, name="Widget"):
    return client.post(
        "/products",
        data={"name": name, "description": "A test widget"},
        files={"file": ("widget.png", png_bytes, "image/png")},
    )


class TestCreateEndpoint:

    def test_create_returns_product(self, client, png_bytes):
        response = create_widget(client, png_bytes)

        assert response.status_code == 201
        body = response.json()
        assert PRODUCT_ID_PATTERN.match(body["id"])
        assert body["name"] == "Widget"
        assert body["image"].endswith(f"/product-images/{body['id']}/image.png")
        assert body["qrCode"].endswith(f"/qr-codes/{body['id']}/qr-code.png")
        assert body["createdAt"]

    def test_assets_are_served(self, client, png_bytes):
        body = create_widget(client, png_bytes).json()

        image = client.get(body["image"])
        qr = client.get(body["qrCode"])

        assert image.status_code == 200
        assert image.content == png_bytes
        assert qr.status_code == 200
        assert qr.content.startswith(b"\x89PNG")

    def test_validation_errors_are_reported_per_field(self, client):
        response = client.post("/products", data={"name": "", "description": "x"})

        assert response.status_code == 422
        body = response.json()
        assert body["kind"] == "validation"
        assert set(body["errors"]) == {"name", "image"}

    def test_non_image_upload_rejected(self, client):
        response = client.post(
            "/products",
            data={"name": "Widget", "description": "A test widget"},
            files={"file": ("notes.txt", b"plain text", "text/plain")},
        )

        assert response.status_code == 422
        assert set(response.json()["errors"]) == {"image"}

    def test_failed_create_is_audited(self, client):
        client.post("/products", data={"name": "", "description": ""})

        logs = client.get("/logs", params={"action": "PRODUCT_CREATE", "status": "FAIL"}).json()

        assert len(logs) == 1
        assert logs[0]["meta"]["kind"] == "validation"


class TestReadEndpoints:

    def test_get_product(self, client, png_bytes):
        created = create_widget(client, png_bytes).json()

        response = client.get(f"/products/{created['id']}")

        assert response.status_code == 200
        assert response.json() == created

    def test_detail_route_matches_qr_scheme(self, client, png_bytes):
        created = create_widget(client, png_bytes).json()

        response = client.get(f"/product/{created['id']}")

        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

    def test_missing_product_is_404(self, client):
        response = client.get("/products/does-not-exist")

        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"

    def test_list_newest_first(self, client, png_bytes):
        ids = [create_widget(client, png_bytes, name=n).json()["id"] for n in ("a", "b", "c")]

        listed = client.get("/products").json()

        assert [p["id"] for p in listed] == list(reversed(ids))

    def test_misconfigured_http_storage_is_reported_as_storage_error(self, client, monkeypatch):
        monkeypatch.setattr(settings, "STORAGE_BACKEND", "http")
        monkeypatch.setattr(settings, "STORAGE_URL", None)
        monkeypatch.setattr(settings, "STORAGE_KEY", None)

        response = client.get("/products")

        assert response.status_code == 502
        assert response.json()["kind"] == "storage"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["storage_backend"] == "local"


class TestUpdateDeleteEndpoints:

    def test_patch_updates_given_fields(self, client, png_bytes):
        created = create_widget(client, png_bytes).json()

        response = client.patch(f"/products/{created['id']}", json={"name": "Gadget"})

        assert response.status_code == 200
        assert response.json()["name"] == "Gadget"
        assert response.json()["description"] == created["description"]

    @pytest.mark.parametrize("field", ["name", "description", "image"])
    def test_patch_null_for_required_field_is_422(self, client, png_bytes, field):
        created = create_widget(client, png_bytes).json()

        response = client.patch(f"/products/{created['id']}", json={field: None})

        assert response.status_code == 422
        assert client.get(f"/products/{created['id']}").json() == created

    def test_patch_missing_is_404(self, client):
        response = client.patch("/products/missing", json={"name": "Gadget"})

        assert response.status_code == 404

    def test_delete(self, client, png_bytes):
        created = create_widget(client, png_bytes).json()

        response = client.delete(f"/products/{created['id']}")

        assert response.status_code == 200
        assert client.get(f"/products/{created['id']}").status_code == 404
        # Assets stay in storage after the row is gone
        assert client.get(created["qrCode"]).status_code == 200

    def test_delete_missing_is_404(self, client):
        assert client.delete("/products/missing").status_code == 404

    def test_actions_are_audited(self, client, png_bytes):
        created = create_widget(client, png_bytes).json()
        client.patch(f"/products/{created['id']}", json={"description": "Revised"})
        client.delete(f"/products/{created['id']}")

        actions = [entry["action"] for entry in client.get("/logs").json()]

        assert actions == ["PRODUCT_DELETE", "PRODUCT_EDIT", "PRODUCT_CREATE"]
