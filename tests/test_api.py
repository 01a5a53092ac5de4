from datetime import timedelta
from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from assettrack.main import create_app
from assettrack.services.qr_code_utils import parse_qr_data

from tests.conftest import BASE_URL, RecordingRenderer, make_token

MACBOOK = {"asset_id": "AST-001", "name": "MacBook Pro", "category": "it-equipment"}


def _create(client, headers, body=MACBOOK):
    resp = client.post("/api/assets/", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestAuth:
    def test_requires_token(self, client):
        resp = client.get("/api/assets/")
        assert resp.status_code == 401
        assert resp.json()["detail"] == "You must be logged in"

    def test_rejects_bad_token(self, client):
        resp = client.get("/api/assets/", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    def test_rejects_expired_token(self, client):
        token = make_token(expires_in=timedelta(minutes=-5))
        resp = client.get("/api/assets/", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Token has expired"

    def test_verify(self, client, auth_headers):
        resp = client.get("/api/auth/verify", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json() == {"valid": True, "user_id": "user-1", "email": "ada@example.com"}


class TestAssets:
    def test_create_list_and_detail(self, client, auth_headers, profile):
        created = _create(client, auth_headers)
        assert created["created_by"] == "user-1"
        assert created["created_by_name"] == "Ada Lovelace"
        assert created["qr_code"] is None

        listing = client.get("/api/assets/", headers=auth_headers).json()
        assert listing["total"] == 1
        assert listing["items"][0]["asset_id"] == "AST-001"

        detail = client.get("/api/assets/AST-001", headers=auth_headers)
        assert detail.status_code == 200
        assert detail.json()["name"] == "MacBook Pro"

    def test_duplicate_asset_id(self, client, auth_headers, profile):
        _create(client, auth_headers)
        resp = client.post("/api/assets/", json=MACBOOK, headers=auth_headers)
        assert resp.status_code == 400
        assert "already exists" in resp.json()["detail"]

    def test_missing_profile(self, client, auth_headers):
        resp = client.post("/api/assets/", json=MACBOOK, headers=auth_headers)
        assert resp.status_code == 400
        assert "profile is missing" in resp.json()["detail"]

    def test_blank_name_rejected(self, client, auth_headers, profile):
        resp = client.post("/api/assets/", json={"asset_id": "AST-9", "name": "   "}, headers=auth_headers)
        assert resp.status_code == 422

    @pytest.mark.parametrize("field", ["name", "category"])
    def test_null_identity_field_rejected(self, client, auth_headers, profile, field):
        _create(client, auth_headers)

        resp = client.patch("/api/assets/AST-001", json={field: None}, headers=auth_headers)

        assert resp.status_code == 422
        assert "not null" in str(resp.json()["detail"])
        assert client.get("/api/assets/AST-001", headers=auth_headers).json()["name"] == "MacBook Pro"

    def test_unknown_asset(self, client, auth_headers):
        assert client.get("/api/assets/AST-404", headers=auth_headers).status_code == 404


class TestQRCodes:
    def test_generate_then_lookup(self, client, auth_headers, profile):
        _create(client, auth_headers)

        resp = client.post("/api/qr-codes/assets/AST-001", headers=auth_headers)
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["success"] is True
        assert body["asset_url"] == f"{BASE_URL}/asset/AST-001"
        assert body["qr_code"].startswith("data:image/png;base64,")

        stored = client.get("/api/assets/AST-001", headers=auth_headers).json()
        assert stored["qr_code"] == body["qr_code"]

        image = client.get("/api/qr-codes/assets/AST-001/image", headers=auth_headers)
        assert image.status_code == 200
        assert image.headers["content-type"] == "image/png"
        assert Image.open(BytesIO(image.content)).size == (200, 200)

    def test_generate_with_options(self, client, auth_headers, profile):
        _create(client, auth_headers)
        resp = client.post(
            "/api/qr-codes/assets/AST-001",
            json={"options": {"size": 120, "error_correction": "H"}},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        image = client.get("/api/qr-codes/assets/AST-001/image", headers=auth_headers)
        assert Image.open(BytesIO(image.content)).size == (120, 120)

    def test_bad_color_rejected(self, client, auth_headers, profile):
        _create(client, auth_headers)
        resp = client.post(
            "/api/qr-codes/assets/AST-001",
            json={"options": {"dark": "black"}},
            headers=auth_headers,
        )
        assert resp.status_code == 422

    def test_generate_unknown_asset(self, client, auth_headers):
        resp = client.post("/api/qr-codes/assets/AST-404", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json()["kind"] == "not_found"

    def test_image_before_generation(self, client, auth_headers, profile):
        _create(client, auth_headers)
        resp = client.get("/api/qr-codes/assets/AST-001/image", headers=auth_headers)
        assert resp.status_code == 404

    def test_bulk(self, client, auth_headers, profile):
        _create(client, auth_headers)
        _create(client, auth_headers, {"asset_id": "AST-002", "name": "Forklift", "category": "vehicles"})

        resp = client.post(
            "/api/qr-codes/bulk",
            json={"asset_ids": ["AST-002", "AST-404", "AST-001"]},
            headers=auth_headers,
        )

        assert resp.status_code == 200
        body = resp.json()
        assert (body["total"], body["succeeded"], body["failed"]) == (3, 2, 1)
        assert [r["asset_id"] for r in body["results"]] == ["AST-002", "AST-404", "AST-001"]
        assert body["results"][1]["kind"] == "not_found"

    def test_bulk_limit(self, client, app, auth_headers):
        app.state.settings.QR_BULK_MAX_ITEMS = 2
        resp = client.post(
            "/api/qr-codes/bulk",
            json={"asset_ids": ["A", "B", "C"]},
            headers=auth_headers,
        )
        assert resp.status_code == 400

    def test_parse(self, client, auth_headers):
        resp = client.post(
            "/api/qr-codes/parse",
            json={"data": '{"type":"asset","id":"AST-1","name":"Drill"}'},
            headers=auth_headers,
        )
        assert resp.json() == {
            "valid": True,
            "qr_data": {"asset_id": "AST-1", "name": "Drill", "category": "unknown", "url": ""},
        }

        resp = client.post("/api/qr-codes/parse", json={"data": "WIFI:S:guest;;"}, headers=auth_headers)
        assert resp.json() == {"valid": False, "qr_data": None}

    def test_lookup_reports_current_state(self, client, auth_headers, profile):
        _create(client, auth_headers)
        client.patch("/api/assets/AST-001", json={"location": "Warehouse"}, headers=auth_headers)

        resp = client.post(
            "/api/qr-codes/lookup",
            json={"data": '{"type":"asset","id":"AST-001","name":"Old Name","category":"misc"}'},
            headers=auth_headers,
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["asset"]["name"] == "MacBook Pro"
        assert body["asset"]["location"] == "Warehouse"
        assert body["asset"]["created_by_name"] == "Ada Lovelace"
        assert body["qr_data"]["name"] == "Old Name"

    def test_lookup_not_found_vs_invalid(self, client, auth_headers):
        missing = client.post(
            "/api/qr-codes/lookup",
            json={"data": '{"type":"asset","id":"AST-404","name":"Gone"}'},
            headers=auth_headers,
        )
        invalid = client.post("/api/qr-codes/lookup", json={"data": "hello"}, headers=auth_headers)

        assert missing.status_code == 404
        assert missing.json()["kind"] == "not_found"
        assert invalid.status_code == 422
        assert invalid.json()["kind"] == "invalid_payload"

    def test_deeply_nested_payload_is_invalid(self, client, auth_headers):
        nested = "[" * 5000

        lookup = client.post("/api/qr-codes/lookup", json={"data": nested}, headers=auth_headers)
        parsed = client.post("/api/qr-codes/parse", json={"data": nested}, headers=auth_headers)

        assert lookup.status_code == 422
        assert lookup.json()["kind"] == "invalid_payload"
        assert parsed.json() == {"valid": False, "qr_data": None}

    def test_scan_without_decoder(self, client, auth_headers):
        resp = client.post(
            "/api/qr-codes/scan",
            files={"file": ("frame.png", b"\x89PNG", "image/png")},
            headers=auth_headers,
        )
        assert resp.status_code == 501


class TestIdentityChanges:
    def test_rename_regenerates_existing_qr(self, settings, auth_headers):
        renderer = RecordingRenderer()
        app = create_app(settings, renderer=renderer, configure_logging=False)
        with TestClient(app) as client:
            _seed_profile(app)
            _create(client, auth_headers)
            client.post("/api/qr-codes/assets/AST-001", headers=auth_headers)

            resp = client.patch("/api/assets/AST-001", json={"name": "MacBook Air"}, headers=auth_headers)

        assert resp.status_code == 200
        body = resp.json()
        assert len(renderer.calls) == 2
        embedded = parse_qr_data(body["qr_code"][len("rendered:"):])
        assert embedded.name == "MacBook Air"

    def test_edit_without_identity_change_keeps_qr(self, settings, auth_headers):
        renderer = RecordingRenderer()
        app = create_app(settings, renderer=renderer, configure_logging=False)
        with TestClient(app) as client:
            _seed_profile(app)
            _create(client, auth_headers)
            client.post("/api/qr-codes/assets/AST-001", headers=auth_headers)

            resp = client.patch("/api/assets/AST-001", json={"location": "Lab"}, headers=auth_headers)

        assert resp.status_code == 200
        assert len(renderer.calls) == 1

    def test_rename_without_qr_does_not_generate(self, settings, auth_headers):
        renderer = RecordingRenderer()
        app = create_app(settings, renderer=renderer, configure_logging=False)
        with TestClient(app) as client:
            _seed_profile(app)
            _create(client, auth_headers)
            resp = client.patch("/api/assets/AST-001", json={"name": "Renamed"}, headers=auth_headers)

        assert resp.json()["qr_code"] is None
        assert renderer.calls == []


class TestScanWithDecoder:
    def test_decoded_upload_is_resolved(self, settings, auth_headers):
        def decoder(frame):
            return '{"type":"asset","id":"AST-001","name":"MacBook Pro"}' if frame == b"frame-1" else None

        app = create_app(settings, frame_decoder=decoder, configure_logging=False)
        with TestClient(app) as client:
            _seed_profile(app)
            _create(client, auth_headers)

            hit = client.post(
                "/api/qr-codes/scan",
                files={"file": ("frame.jpg", b"frame-1", "image/jpeg")},
                headers=auth_headers,
            )
            miss = client.post(
                "/api/qr-codes/scan",
                files={"file": ("frame.jpg", b"frame-2", "image/jpeg")},
                headers=auth_headers,
            )

        assert hit.status_code == 200
        assert hit.json()["asset"]["asset_id"] == "AST-001"
        assert miss.status_code == 422


def _seed_profile(app):
    from assettrack.models.profile import Profile

    db = app.state.session_factory()
    try:
        db.add(Profile(id="user-1", full_name="Ada Lovelace"))
        db.commit()
    finally:
        db.close()


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json()["database_ok"] is True
