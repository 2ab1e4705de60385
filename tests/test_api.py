"""End-to-end tests through the Litestar application."""

import io
from uuid import uuid4

import pytest
from litestar.testing import TestClient
from PIL import Image as PILImage

from galleria.app_factory import create_app
from galleria.config import AuthConfig, DatabaseConfig, Settings, StorageConfig, StoreConfig


def _png_bytes():
    buf = io.BytesIO()
    PILImage.new("RGB", (32, 24), color=(0, 128, 255)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def client(tmp_path):
    settings = Settings(
        secret_key="api-test-secret",
        db=DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'api.db'}", create_all=True),
        storage=StorageConfig(stores={"default": StoreConfig(local_path=str(tmp_path / "media"))}),
        auth=AuthConfig(bcrypt_rounds=4),
        _env_file=None,
    )
    with TestClient(app=create_app(settings)) as test_client:
        yield test_client


def _register(client, email="ada@example.com", username="ada", password="hunter22"):
    response = client.post(
        "/auth/register",
        json={"email": email, "username": username, "password": password},
    )
    assert response.status_code == 201, response.text
    return response.json()


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def _upload(client, token, title="Sunset", tags="sea,sun", is_public="true"):
    response = client.post(
        "/api/images/",
        files={"image": ("photo.png", _png_bytes(), "image/png")},
        data={"title": title, "description": "evening", "tags": tags, "is_public": is_public},
        headers=_auth(token),
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestIndex:
    def test_banner(self, client):
        body = client.get("/").json()
        assert body["message"] == "Galleria API"


class TestAuthFlow:
    def test_register_returns_token(self, client):
        body = _register(client)
        assert body["token_type"] == "bearer"
        assert body["expires_in"] == 86400
        assert body["user"]["username"] == "ada"
        assert "password_hash" not in body["user"]

    def test_duplicate_email_is_conflict(self, client):
        _register(client)
        response = client.post(
            "/auth/register",
            json={"email": "ada@example.com", "username": "other", "password": "hunter22"},
        )
        assert response.status_code == 409
        assert response.json()["code"] == "email_exists"

    def test_invalid_body_is_400(self, client):
        response = client.post(
            "/auth/register",
            json={"email": "not-an-email", "username": "ada", "password": "hunter22"},
        )
        assert response.status_code == 400

    def test_password_limit_counts_bytes(self, client):
        password = "\u00e9" * 40
        response = client.post(
            "/auth/register",
            json={"email": "ada@example.com", "username": "ada", "password": password},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_input"
        assert "72 bytes" in response.json()["detail"]

    def test_login(self, client):
        _register(client)
        response = client.post(
            "/auth/login", json={"email": "ada@example.com", "password": "hunter22"}
        )
        assert response.status_code == 200
        assert response.json()["token"]

    def test_login_wrong_password(self, client):
        _register(client)
        response = client.post(
            "/auth/login", json={"email": "ada@example.com", "password": "nope-nope"}
        )
        assert response.status_code == 401
        assert response.json()["code"] == "invalid_credentials"

    def test_profile_requires_token(self, client):
        assert client.get("/api/profile").status_code == 401
        assert client.get("/api/profile", headers=_auth("garbage")).status_code == 401

    def test_profile_roundtrip(self, client):
        token = _register(client)["token"]
        response = client.put(
            "/api/profile", json={"first_name": "Ada"}, headers=_auth(token)
        )
        assert response.status_code == 200
        assert client.get("/api/profile", headers=_auth(token)).json()["first_name"] == "Ada"

    def test_change_password_then_deactivate(self, client):
        token = _register(client)["token"]
        response = client.put(
            "/api/password",
            json={"old_password": "hunter22", "new_password": "better-pass"},
            headers=_auth(token),
        )
        assert response.status_code == 200

        assert client.post("/api/account/deactivate", headers=_auth(token)).status_code == 200
        response = client.post(
            "/auth/login", json={"email": "ada@example.com", "password": "better-pass"}
        )
        assert response.status_code == 403


class TestImages:
    def test_upload_and_fetch(self, client):
        token = _register(client)["token"]
        image = _upload(client, token)

        assert image["width"] == 32
        assert image["height"] == 24
        assert image["format"] == "png"
        assert image["url"].startswith("/storage/default/images/")

        fetched = client.get(f"/api/images/{image['id']}", headers=_auth(token))
        assert fetched.status_code == 200
        assert client.get(image["url"]).status_code == 200

    def test_upload_requires_token(self, client):
        response = client.post(
            "/api/images/",
            files={"image": ("photo.png", _png_bytes(), "image/png")},
            data={"title": "x"},
        )
        assert response.status_code == 401

    def test_rejects_wrong_extension(self, client):
        token = _register(client)["token"]
        response = client.post(
            "/api/images/",
            files={"image": ("notes.txt", b"hello", "text/plain")},
            data={"title": "notes"},
            headers=_auth(token),
        )
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_file_type"

    def test_rejects_undecodable_image(self, client):
        token = _register(client)["token"]
        response = client.post(
            "/api/images/",
            files={"image": ("fake.png", b"not really a png", "image/png")},
            data={"title": "fake"},
            headers=_auth(token),
        )
        assert response.status_code == 400

    def test_stranger_cannot_delete(self, client):
        owner_token = _register(client)["token"]
        other_token = _register(client, email="bob@example.com", username="bob")["token"]
        image = _upload(client, owner_token)

        response = client.delete(f"/api/images/{image['id']}", headers=_auth(other_token))
        assert response.status_code == 403

        response = client.delete(f"/api/images/{image['id']}", headers=_auth(owner_token))
        assert response.status_code == 200
        assert client.get(f"/public/images/{image['id']}").status_code == 404

    def test_update_and_my_images(self, client):
        token = _register(client)["token"]
        image = _upload(client, token)

        response = client.put(
            f"/api/images/{image['id']}", json={"title": "Dusk"}, headers=_auth(token)
        )
        assert response.json()["title"] == "Dusk"

        mine = client.get("/api/images/my", headers=_auth(token)).json()
        assert [i["id"] for i in mine] == [image["id"]]

    def test_variant(self, client):
        token = _register(client)["token"]
        image = _upload(client, token)

        response = client.get(f"/api/images/{image['id']}/variants/icon", headers=_auth(token))
        assert response.status_code == 200
        assert response.json()["url"].endswith(".64x64")

        bad = client.get(f"/api/images/{image['id']}/variants/huge", headers=_auth(token))
        assert bad.status_code == 400


class TestPostsAndPublic:
    def test_post_lifecycle(self, client):
        token = _register(client)["token"]
        image = _upload(client, token)

        response = client.post(
            "/api/posts/",
            json={"title": "Trip", "image_ids": [image["id"]], "tags": "travel"},
            headers=_auth(token),
        )
        assert response.status_code == 201, response.text
        post = response.json()
        assert [i["id"] for i in post["images"]] == [image["id"]]

        assert client.get(f"/public/posts/{post['id']}").status_code == 200
        found = client.get("/public/posts/tags", params={"tags": "travel"}).json()
        assert [p["id"] for p in found] == [post["id"]]

        assert client.delete(f"/api/posts/{post['id']}", headers=_auth(token)).status_code == 200
        assert client.get(f"/public/posts/{post['id']}").status_code == 404

    def test_post_with_foreign_image_is_forbidden(self, client):
        owner_token = _register(client)["token"]
        other_token = _register(client, email="bob@example.com", username="bob")["token"]
        image = _upload(client, owner_token)

        response = client.post(
            "/api/posts/",
            json={"title": "Stolen", "image_ids": [image["id"]]},
            headers=_auth(other_token),
        )
        assert response.status_code == 403

    def test_post_mutation_stranger_vs_missing(self, client):
        owner_token = _register(client)["token"]
        other_token = _register(client, email="bob@example.com", username="bob")["token"]
        image = _upload(client, owner_token)
        post = client.post(
            "/api/posts/",
            json={"title": "Trip", "image_ids": [image["id"]]},
            headers=_auth(owner_token),
        ).json()

        stranger = _auth(other_token)
        url = f"/api/posts/{post['id']}"
        assert client.put(url, json={"title": "Mine"}, headers=stranger).status_code == 403
        assert client.delete(url, headers=stranger).status_code == 403

        missing = f"/api/posts/{uuid4()}"
        assert client.put(missing, json={"title": "x"}, headers=stranger).status_code == 404
        assert client.delete(missing, headers=stranger).status_code == 404

        assert client.get(url, headers=_auth(owner_token)).json()["title"] == "Trip"

    def test_public_listing_and_search(self, client):
        token = _register(client)["token"]
        public = _upload(client, token, title="Golden Gate")
        private = _upload(client, token, title="Golden Hour", is_public="false")

        listed = client.get("/public/images").json()
        assert [i["id"] for i in listed] == [public["id"]]

        found = client.get("/public/images/search", params={"q": "golden"}).json()
        assert [i["id"] for i in found] == [public["id"]]

        assert client.get(f"/public/images/{private['id']}").status_code == 404
        owner_view = client.get(f"/public/images/{private['id']}", headers=_auth(token))
        assert owner_view.status_code == 200

    def test_pagination_bounds(self, client):
        assert client.get("/public/images", params={"limit": 0}).status_code == 400
        assert client.get("/public/images", params={"limit": 101}).status_code == 400
        assert client.get("/public/images", params={"page": 0}).status_code == 400
