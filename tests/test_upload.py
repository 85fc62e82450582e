import io
import os

import pytest
from PIL import Image

from main import app
from storefront.services.storage_service import MAX_UPLOAD_SIZE, generate_filename, get_storage


def png_bytes():
    output = io.BytesIO()
    Image.new("RGB", (4, 4), color=(200, 30, 30)).save(output, format="PNG")
    return output.getvalue()


class RecordingStorage:
    def __init__(self):
        self.saved = []

    def save(self, content, filename, content_type):
        self.saved.append((filename, content_type, len(content)))
        return f"https://cdn.example.com/uploads/{filename}"


@pytest.fixture
def recording_storage():
    storage = RecordingStorage()
    app.dependency_overrides[get_storage] = lambda: storage
    yield storage
    app.dependency_overrides.pop(get_storage, None)


def test_upload_png_to_local_storage(client):
    response = client.post("/api/upload", files={"file": ("Hero Shot.PNG", png_bytes(), "image/png")})

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["url"] == f"/uploads/{data['name']}"
    assert data["name"].endswith("-hero-shot.png")
    assert data["type"] == "image/png"
    assert os.path.exists(os.path.join(os.environ["UPLOAD_DIR"], data["name"]))


def test_upload_goes_through_storage_backend(client, recording_storage):
    response = client.post("/api/upload", files={"file": ("leaf.png", png_bytes(), "image/png")})

    assert response.status_code == 201
    assert response.json()["data"]["url"].startswith("https://cdn.example.com/uploads/")
    assert recording_storage.saved[0][1] == "image/png"


def test_upload_requires_file(client):
    response = client.post("/api/upload", data={"other": "value"})

    assert response.status_code == 400
    assert response.json()["message"] == "Image file is required"


def test_upload_rejects_unsupported_type(client, recording_storage):
    response = client.post("/api/upload", files={"file": ("notes.pdf", b"%PDF-1.4", "application/pdf")})

    assert response.status_code == 400
    assert response.json()["message"] == "Only jpg, png, webp, or gif files are allowed"
    assert recording_storage.saved == []


def test_upload_rejects_bytes_that_are_not_an_image(client, recording_storage):
    response = client.post("/api/upload", files={"file": ("fake.png", b"definitely not a png", "image/png")})

    assert response.status_code == 400
    assert response.json()["message"] == "Uploaded file is not a valid image"
    assert recording_storage.saved == []


def test_upload_rejects_large_files(client, recording_storage):
    response = client.post(
        "/api/upload", files={"file": ("big.png", b"0" * (MAX_UPLOAD_SIZE + 1), "image/png")}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "File size must be 5MB or less"


def test_generate_filename_is_url_safe():
    name = generate_filename("My Photo (1).JPG")

    assert name.endswith(".jpg")
    assert "my-photo-1" in name
    assert " " not in name
    assert generate_filename("").endswith("-image.jpg")
