import io
import os

import mongomock
import pytest

from storefront.app import create_app

ADMIN_USERNAME = "jitendra"
ADMIN_PASSWORD = "correct horse battery"
JWT_SECRET = "test-secret-key-that-is-long-enough-for-hs256"

# 1x1 transparent PNG
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08"
    b"\x06\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\x9cc\xf8\x0f\x00\x00"
    b"\x01\x01\x00\x05\x18\xd8N\x00\x00\x00\x00IEND\xaeB`\x82"
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def database():
    return mongomock.MongoClient()["storefront_test"]


@pytest.fixture
def upload_dir(tmp_path):
    return str(tmp_path / "uploads")


@pytest.fixture
def app_config(upload_dir):
    return {
        "TESTING": True,
        "JWT_SECRET_KEY": JWT_SECRET,
        "PRODUCT_UPLOAD_FOLDER": upload_dir,
        "DEFAULT_ADMIN_USERNAME": ADMIN_USERNAME,
        "DEFAULT_ADMIN_PASSWORD": ADMIN_PASSWORD,
        "BCRYPT_ROUNDS": 4,
    }


@pytest.fixture
def app(app_config, database):
    return create_app(app_config, database=database)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def token(client):
    response = client.post(
        "/api/auth/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200
    return response.get_json()["token"]


@pytest.fixture
def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def create_product(client, auth_headers):
    """Create a product through the API and return its JSON."""

    def _create(name, price, image=None, filename="photo.png", mimetype="image/png"):
        data = {"name": name, "price": str(price)}
        if image is not None:
            data["image"] = (io.BytesIO(image), filename, mimetype)
        response = client.post(
            "/api/products",
            data=data,
            headers=auth_headers,
            content_type="multipart/form-data",
        )
        assert response.status_code == 201, response.get_json()
        return response.get_json()["product"]

    return _create


def uploaded_files(upload_dir):
    if not os.path.isdir(upload_dir):
        return []
    return sorted(os.listdir(upload_dir))
