# backend/utils/storage.py
import base64
import binascii
import logging
import re
import uuid
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import quote

import httpx

from config import Settings
from utils.errors import MalformedDataUriError, StorageError

logger = logging.getLogger(__name__)

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<payload>.*)$", re.DOTALL)


def decode_data_uri(data_uri: str) -> Tuple[bytes, str]:
    """Decode ``data:<mime>;base64,<payload>`` into raw bytes and its MIME type."""
    match = _DATA_URI_RE.match(data_uri or "")
    if not match:
        raise MalformedDataUriError("Expected a 'data:<mime>;base64,<payload>' URI")
    try:
        data = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedDataUriError(f"Invalid base64 payload: {e}") from e
    return data, match.group("mime")


def _check_key(key: str) -> str:
    parts = key.split("/") if key else []
    if not parts or key.startswith("/") or any(p in ("", ".", "..") for p in parts):
        raise StorageError(f"Invalid storage key: {key!r}")
    return key


# =========================
# STORAGE CLIENTS
# =========================
class LocalStorageClient:
    """Buckets are directories under ``root``; files are served by the app at /storage."""

    def __init__(self, root, public_base_url: str):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")

    def _path(self, bucket: str, key: str) -> Path:
        return self.root / bucket / key

    def upload(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        path = self._path(bucket, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        # Write-then-rename so a reader never sees a half-written object;
        # each writer gets its own temp file, the last rename wins
        tmp = path.with_name(f"{path.name}.{uuid.uuid4().hex}.part")
        try:
            tmp.write_bytes(data)
            tmp.replace(path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise

    def download(self, bucket: str, key: str) -> bytes:
        return self._path(bucket, key).read_bytes()

    def public_url(self, bucket: str, key: str) -> str:
        return f"{self.public_base_url}/storage/{bucket}/{quote(key)}"


class HttpStorageClient:
    """Object storage reachable over a REST API (endpoint + access key)."""

    def __init__(self, endpoint: str, access_key: str, timeout: float = 10.0, transport=None):
        self.endpoint = endpoint.rstrip("/")
        self._client = httpx.Client(
            base_url=self.endpoint,
            headers={"Authorization": f"Bearer {access_key}", "apikey": access_key},
            timeout=timeout,
            transport=transport,
        )

    def upload(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        response = self._client.post(
            f"/storage/v1/object/{bucket}/{quote(key)}",
            content=data,
            headers={"Content-Type": content_type, "x-upsert": "true"},
        )
        response.raise_for_status()

    def download(self, bucket: str, key: str) -> bytes:
        response = self._client.get(f"/storage/v1/object/public/{bucket}/{quote(key)}")
        response.raise_for_status()
        return response.content

    def public_url(self, bucket: str, key: str) -> str:
        return f"{self.endpoint}/storage/v1/object/public/{bucket}/{quote(key)}"

    def close(self) -> None:
        self._client.close()


# =========================
# ASSET STORE
# =========================
class AssetStore:
    def __init__(self, client, images_bucket: str = "product-images", qr_bucket: str = "qr-codes"):
        self.client = client
        self.images_bucket = images_bucket
        self.qr_bucket = qr_bucket

    def put(self, bucket: str, key: str, data: bytes, content_type: str) -> str:
        """Upload (or overwrite) an object and return its public URL."""
        _check_key(key)
        try:
            self.client.upload(bucket, key, data, content_type)
        except (OSError, httpx.HTTPError) as e:
            logger.error("Upload to %s/%s failed: %s", bucket, key, e)
            raise StorageError(f"Failed to upload {bucket}/{key}") from e
        logger.info("Stored %s/%s (%d bytes, %s)", bucket, key, len(data), content_type)
        return self.client.public_url(bucket, key)

    def get(self, bucket: str, key: str) -> bytes:
        _check_key(key)
        try:
            return self.client.download(bucket, key)
        except (OSError, httpx.HTTPError) as e:
            logger.error("Read of %s/%s failed: %s", bucket, key, e)
            raise StorageError(f"Failed to read {bucket}/{key}") from e

    def put_product_image(self, product_id: str, data: bytes, content_type: Optional[str],
                          extension: Optional[str] = None) -> str:
        ext = (extension or "").lstrip(".").lower() or "jpg"
        return self.put(self.images_bucket, f"{product_id}/image.{ext}", data, content_type or "image/jpeg")

    def put_qr_code(self, product_id: str, data: bytes, content_type: str = "image/png") -> str:
        return self.put(self.qr_bucket, f"{product_id}/qr-code.png", data, content_type)

    def close(self) -> None:
        close = getattr(self.client, "close", None)
        if close is not None:
            close()


def build_asset_store(settings: Settings) -> AssetStore:
    if settings.STORAGE_BACKEND == "http":
        if not settings.STORAGE_URL or not settings.STORAGE_KEY:
            raise StorageError("STORAGE_URL and STORAGE_KEY are required for the http storage backend")
        client = HttpStorageClient(settings.STORAGE_URL, settings.STORAGE_KEY, timeout=settings.STORAGE_TIMEOUT)
    else:
        client = LocalStorageClient(settings.STORAGE_DIR, settings.PUBLIC_BASE_URL)
    return AssetStore(client, settings.PRODUCT_IMAGES_BUCKET, settings.QR_CODES_BUCKET)
