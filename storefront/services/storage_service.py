import io
import logging
import os
import re
import uuid
from datetime import datetime
from typing import Optional

from dotenv import load_dotenv
from fastapi import UploadFile
from google.cloud import storage
from google.oauth2 import service_account
from PIL import Image, UnidentifiedImageError

load_dotenv()

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}
MAX_UPLOAD_SIZE = 5 * 1024 * 1024  # 5MB


class UploadError(ValueError):
    pass


def sanitize_filename(name: str) -> str:
    safe = re.sub(r"[^a-z0-9.\-_]", "-", name.lower())
    return re.sub(r"-+", "-", safe)


def generate_filename(original_filename: str) -> str:
    """Generate a unique, url-safe file name that keeps the original stem and extension"""
    stem, ext = os.path.splitext(os.path.basename(original_filename or ""))
    ext = ext.lower() or ".jpg"
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    unique_id = str(uuid.uuid4())[:8]
    return f"{timestamp}_{unique_id}-{sanitize_filename(stem) or 'image'}{ext}"


def verify_image(content: bytes) -> None:
    try:
        with Image.open(io.BytesIO(content)) as image:
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        # Pillow reports truncated or corrupt data through any of these
        raise UploadError("Uploaded file is not a valid image") from e


class LocalStorage:
    """Writes uploads under UPLOAD_DIR, which main.py serves at /uploads."""

    def __init__(self, upload_dir: Optional[str] = None):
        self.upload_dir = upload_dir or os.getenv("UPLOAD_DIR", "uploads")
        os.makedirs(self.upload_dir, exist_ok=True)

    def save(self, content: bytes, filename: str, content_type: str) -> str:
        with open(os.path.join(self.upload_dir, filename), "wb") as f:
            f.write(content)
        return f"/uploads/{filename}"


class GCSStorage:
    def __init__(self):
        credentials_path = os.getenv("GCS_CREDENTIALS_PATH")
        self.bucket_name = os.getenv("GCS_BUCKET_NAME")
        self.cdn_base_url = os.getenv("CDN_BASE_URL")

        if not credentials_path or not self.bucket_name or not self.cdn_base_url:
            raise ValueError("GCS configuration missing in .env file")

        # Make path absolute if it's relative
        if not os.path.isabs(credentials_path):
            credentials_path = os.path.join(os.getcwd(), credentials_path)

        if not os.path.exists(credentials_path):
            raise ValueError(f"GCS credentials file not found at: {credentials_path}")

        credentials = service_account.Credentials.from_service_account_file(credentials_path)
        self.client = storage.Client(credentials=credentials)
        self.bucket = self.client.bucket(self.bucket_name)

    def save(self, content: bytes, filename: str, content_type: str) -> str:
        blob = self.bucket.blob(f"uploads/{filename}")
        blob.upload_from_string(content, content_type=content_type)
        blob.make_public()
        return f"{self.cdn_base_url}/uploads/{filename}"


_storage = None


def get_storage():
    """
    Storage backend chosen by STORAGE_BACKEND (local or gcs), built on first use.
    Routes take it as a dependency so tests can swap it out.
    """
    global _storage
    if _storage is None:
        backend = os.getenv("STORAGE_BACKEND", "local").lower()
        _storage = GCSStorage() if backend == "gcs" else LocalStorage()
        logger.info(f"Upload storage backend: {type(_storage).__name__}")
    return _storage


async def store_image(file: Optional[UploadFile], storage) -> dict:
    """
    Validate an uploaded image and hand it to the storage backend.

    Args:
        file: Multipart ``file`` field, None when it was not sent
        storage: Backend with a ``save(content, filename, content_type)`` method

    Returns:
        dict with url, name, size and type of the stored file

    Raises:
        UploadError: missing file, wrong type, too large or not decodable
    """
    if file is None or not file.filename:
        raise UploadError("Image file is required")

    if file.content_type not in ALLOWED_MIME_TYPES:
        raise UploadError("Only jpg, png, webp, or gif files are allowed")

    content = await file.read()
    if len(content) > MAX_UPLOAD_SIZE:
        raise UploadError("File size must be 5MB or less")

    verify_image(content)

    filename = generate_filename(file.filename)
    url = storage.save(content, filename, file.content_type)
    logger.info(f"Stored upload {file.filename} as {filename} ({len(content)} bytes)")

    return {"url": url, "name": filename, "size": len(content), "type": file.content_type}
