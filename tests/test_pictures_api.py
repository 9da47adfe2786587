"""Tests for the picture upload, view and delete endpoints."""
import io
import uuid

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy.orm import sessionmaker

from config import Settings
from picture_store import main
from picture_store.db import create_db_engine, get_db
from picture_store.dependencies import get_blob_store, get_metadata_index
from picture_store.main import app
from picture_store.models import Base
from picture_store.repositories import InMemoryMetadataIndex
from picture_store.storage import LocalBlobStore, StorageError
from picture_store.urls import pictures_path

UPLOAD_URL = "/api/v1/pictures/upload"


@pytest.fixture
def metadata_index():
    return InMemoryMetadataIndex()


@pytest.fixture
def blob_store(tmp_path):
    return LocalBlobStore(storage_root=tmp_path / "pictures")


@pytest.fixture
def client(metadata_index, blob_store):
    """Client wired to a temporary blob store and in-memory metadata."""
    app.dependency_overrides[get_metadata_index] = lambda: metadata_index
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    yield TestClient(app)
    app.dependency_overrides.clear()


def create_test_jpeg(width: int = 10, height: int = 10) -> bytes:
    img = Image.new("RGB", (width, height), color=(200, 100, 50))
    buf = io.BytesIO()
    img.save(buf, format="JPEG")
    return buf.getvalue()


def upload(client, content: bytes, name: str = "test.jpg", content_type: str = "image/jpeg"):
    return client.post(UPLOAD_URL, files={"picture": (name, content, content_type)})


class TestUpload:

    def test_upload_success(self, client, metadata_index, blob_store):
        content = create_test_jpeg()

        response = upload(client, content)

        assert response.status_code == 201
        data = response.json()
        picture_id = uuid.UUID(data["id"])
        assert data["picture_unique_name"] == "test.jpg"
        assert data["picture_url"] == f"http://testserver/api/v1/pictures/view/{picture_id}"
        assert "upload_date" in data

        record = metadata_index.find_by_id(picture_id)
        assert record.size_bytes == len(content)
        assert record.content_type == "image/jpeg"
        assert blob_store.read(picture_id) == content

    def test_upload_uses_public_base_url(self, client, monkeypatch):
        monkeypatch.setattr(
            "picture_store.dependencies.get_settings",
            lambda: Settings(public_base_url="https://pictures.example.com"),
        )

        response = upload(client, b"test data")

        picture_id = response.json()["id"]
        assert response.json()["picture_url"] == (
            f"https://pictures.example.com/api/v1/pictures/view/{picture_id}"
        )

    def test_upload_empty_file(self, client, metadata_index, blob_store):
        response = upload(client, b"")

        assert response.status_code == 400
        assert "empty" in response.json()["detail"].lower()
        assert metadata_index.count() == 0
        assert list(blob_store.storage_root.iterdir()) == []

    def test_upload_missing_file_field(self, client):
        response = client.post(UPLOAD_URL, data={"other": "value"})
        assert response.status_code == 422

    def test_upload_too_large(self, client, monkeypatch, metadata_index):
        monkeypatch.setattr(main.settings, "max_upload_size", 8)

        response = upload(client, b"more than eight bytes")

        assert response.status_code == 413
        assert metadata_index.count() == 0

    def test_upload_storage_failure(self, client, blob_store, monkeypatch, metadata_index):
        def failing_write(object_id, stream):
            raise StorageError("disk full")

        monkeypatch.setattr(blob_store, "write", failing_write)

        response = upload(client, b"test data")

        assert response.status_code == 500
        assert metadata_index.count() == 0

    def test_upload_metadata_failure_leaves_no_blob(self, client, metadata_index, blob_store, monkeypatch):
        def failing_save(record):
            raise RuntimeError("index down")

        monkeypatch.setattr(metadata_index, "save", failing_save)

        response = upload(client, b"test data")

        assert response.status_code == 500
        assert list(blob_store.storage_root.iterdir()) == []


class TestView:

    def test_view_returns_bytes_with_type_and_name(self, client):
        content = create_test_jpeg()
        picture_id = upload(client, content, name="holiday.jpg").json()["id"]

        response = client.get(f"/api/v1/pictures/view/{picture_id}")

        assert response.status_code == 200
        assert response.content == content
        assert response.headers["content-type"] == "image/jpeg"
        assert response.headers["content-disposition"] == 'inline; filename="holiday.jpg"'

    def test_view_unknown_id(self, client):
        response = client.get(f"/api/v1/pictures/view/{uuid.uuid4()}")
        assert response.status_code == 404

    def test_view_blob_missing(self, client, blob_store):
        picture_id = upload(client, b"test data").json()["id"]
        blob_store.delete(picture_id)

        response = client.get(f"/api/v1/pictures/view/{picture_id}")

        assert response.status_code == 404

    def test_view_record_missing(self, client, metadata_index):
        picture_id = upload(client, b"test data").json()["id"]
        metadata_index.clear()

        response = client.get(f"/api/v1/pictures/view/{picture_id}")

        assert response.status_code == 404

    def test_view_invalid_id(self, client):
        response = client.get("/api/v1/pictures/view/not-a-uuid")
        assert response.status_code == 422


class TestDetail:

    def test_get_metadata(self, client):
        picture_id = upload(client, b"test data", name="notes.jpg").json()["id"]

        response = client.get(f"/api/v1/pictures/{picture_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == picture_id
        assert data["original_name"] == "notes.jpg"
        assert data["content_type"] == "image/jpeg"
        assert data["size_bytes"] == 9

    def test_get_metadata_unknown(self, client):
        assert client.get(f"/api/v1/pictures/{uuid.uuid4()}").status_code == 404


class TestDelete:

    def test_delete(self, client, metadata_index):
        picture_id = upload(client, b"test data").json()["id"]

        response = client.delete(f"/api/v1/pictures/{picture_id}")

        assert response.status_code == 204
        assert client.get(f"/api/v1/pictures/view/{picture_id}").status_code == 404
        assert metadata_index.count() == 0

    def test_delete_unknown(self, client):
        response = client.delete(f"/api/v1/pictures/{uuid.uuid4()}")
        assert response.status_code == 404

    def test_delete_storage_failure(self, client, blob_store, monkeypatch):
        picture_id = upload(client, b"test data").json()["id"]

        def failing_delete(object_id):
            raise StorageError("permission denied")

        monkeypatch.setattr(blob_store, "delete", failing_delete)

        response = client.delete(f"/api/v1/pictures/{picture_id}")

        assert response.status_code == 500
        assert client.get(f"/api/v1/pictures/{picture_id}").status_code == 200


class TestDatabaseMetadata:
    """End to end with the SQLAlchemy metadata index."""

    @pytest.fixture
    def db_client(self, tmp_path, blob_store, monkeypatch):
        engine = create_db_engine(f"sqlite:///{tmp_path / 'db' / 'test.sqlite3'}")
        Base.metadata.create_all(engine)
        TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)

        def override_get_db():
            db = TestingSession()
            try:
                yield db
            finally:
                db.close()

        monkeypatch.setattr(
            "picture_store.dependencies.get_settings",
            lambda: Settings(metadata_storage="database"),
        )
        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_blob_store] = lambda: blob_store
        yield TestClient(app)
        app.dependency_overrides.clear()
        engine.dispose()

    def test_upload_view_delete(self, db_client):
        content = create_test_jpeg()

        created = upload(db_client, content)
        assert created.status_code == 201
        picture_id = created.json()["id"]

        viewed = db_client.get(f"/api/v1/pictures/view/{picture_id}")
        assert viewed.status_code == 200
        assert viewed.content == content

        assert db_client.delete(f"/api/v1/pictures/{picture_id}").status_code == 204
        assert db_client.get(f"/api/v1/pictures/{picture_id}").status_code == 404
        assert db_client.delete(f"/api/v1/pictures/{picture_id}").status_code == 404


class TestApiPrefix:

    def test_routes_mounted_under_configured_prefix(self):
        path = app.url_path_for("view_picture", picture_id=str(uuid.uuid4()))
        assert path.startswith(f"{main.settings.api_prefix}/pictures/view/")

    def test_custom_prefix_serves_routes_and_urls(self, metadata_index, blob_store, monkeypatch):
        monkeypatch.setattr(
            "picture_store.dependencies.get_settings",
            lambda: Settings(api_prefix="/api/v2"),
        )
        v2_app = FastAPI()
        v2_app.include_router(main.router, prefix=pictures_path("/api/v2"))
        v2_app.dependency_overrides[get_metadata_index] = lambda: metadata_index
        v2_app.dependency_overrides[get_blob_store] = lambda: blob_store
        v2_client = TestClient(v2_app)

        response = v2_client.post(
            "/api/v2/pictures/upload", files={"picture": ("test.jpg", b"test data", "image/jpeg")}
        )

        assert response.status_code == 201
        picture_id = response.json()["id"]
        assert response.json()["picture_url"] == f"http://testserver/api/v2/pictures/view/{picture_id}"
        assert v2_client.get(f"/api/v2/pictures/view/{picture_id}").content == b"test data"
        assert v2_client.get(f"/api/v1/pictures/view/{picture_id}").status_code == 404


@pytest.mark.parametrize("filename, expected", [
    ("holiday.jpg", 'inline; filename="holiday.jpg"'),
    ("café.jpg", "inline; filename*=UTF-8''caf%C3%A9.jpg"),
    ('say "cheese".jpg', "inline; filename*=UTF-8''say%20%22cheese%22.jpg"),
    ("evil\r\nname.jpg", "inline; filename*=UTF-8''evil%0D%0Aname.jpg"),
    ("tab\tbed.jpg", "inline; filename*=UTF-8''tab%09bed.jpg"),
])
def test_content_disposition(filename, expected):
    assert main._content_disposition(filename) == expected
