# services/storage_service.py
"""
Object storage for event posters and CSV reports.

S3Storage is the production backend; LocalStorage writes under a directory
and is used for local runs and tests. Both expose the same four calls.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from config import (
    STORAGE_BACKEND,
    LOCAL_STORAGE_DIR,
    S3_BUCKET,
    S3_EXTRA_ARGS,
    S3_USE_PRESIGNED,
    S3_PRESIGN_EXPIRES,
)

logger = logging.getLogger(__name__)


class S3Storage:
    def __init__(self, bucket: str, client=None):
        self.bucket = bucket
        self._client = client

    # Lazy S3 client (avoid side effects at import time)
    def _s3(self):
        if self._client is None:
            from services.aws_session import get_session
            self._client = get_session().client("s3")
        return self._client

    def upload_bytes(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        extra_args = {"ContentType": content_type, **(S3_EXTRA_ARGS or {})}
        self._s3().put_object(Bucket=self.bucket, Key=key, Body=data, **extra_args)
        logger.info("Uploaded s3://%s/%s (%d bytes)", self.bucket, key, len(data))
        return self.public_url(key)

    def get_bytes(self, key: str) -> bytes:
        obj = self._s3().get_object(Bucket=self.bucket, Key=key)
        return obj["Body"].read()

    def delete(self, key: str) -> None:
        self._s3().delete_object(Bucket=self.bucket, Key=key)

    def public_url(self, key: str) -> str:
        if S3_USE_PRESIGNED:
            return self._s3().generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=S3_PRESIGN_EXPIRES,
            )
        return f"https://{self.bucket}.s3.amazonaws.com/{key}"


class LocalStorage:
    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"Storage key escapes root: {key}")
        return path

    def upload_bytes(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info("Stored %s (%d bytes)", path, len(data))
        return self.public_url(key)

    def get_bytes(self, key: str) -> bytes:
        path = self._path(key)
        if not path.exists():
            raise FileNotFoundError(key)
        return path.read_bytes()

    def delete(self, key: str) -> None:
        path = self._path(key)
        if not path.exists():
            raise FileNotFoundError(key)
        path.unlink()

    def public_url(self, key: str) -> str:
        return self._path(key).as_uri()


_storage = None

def get_storage(backend: Optional[str] = None):
    """Return the configured storage backend (cached for the default one)."""
    global _storage
    if backend is None and _storage is not None:
        return _storage
    kind = (backend or STORAGE_BACKEND).lower()
    if kind == "s3":
        store = S3Storage(S3_BUCKET)
    else:
        store = LocalStorage(LOCAL_STORAGE_DIR)
    if backend is None:
        _storage = store
    return store
