"""Local media storage for case attachments and lawyer logos.

Objects are addressed by a ``public_id`` relative to ``MEDIA_ROOT`` (for
example ``affaires/<case_id>/<uuid>.pdf``). Public URLs are served by the
``/uploads`` static mount; signed URLs are short-lived JWTs resolved by
``GET /api/affaires/files/{token}``.
"""
import logging
import os
import uuid
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable, Optional

import aiofiles
from fastapi import HTTPException, UploadFile, status
from jose import JWTError, jwt

from app import config

logger = logging.getLogger(__name__)

IMAGE_FORMATS = {"jpg", "jpeg", "png", "gif", "bmp", "webp"}
VIDEO_FORMATS = {"mp4", "mov", "avi", "mkv"}

SIGNED_URL_PATH = "/api/affaires/files"


def resource_kind(file_format: str) -> str:
    file_format = (file_format or "").lower()
    if file_format in IMAGE_FORMATS:
        return "image"
    if file_format in VIDEO_FORMATS:
        return "video"
    return "raw"


async def read_upload(file: UploadFile, allowed_extensions: Iterable[str], max_size: int) -> bytes:
    """Validate an uploaded file's extension and size and return its content."""
    if not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file provided")

    ext = Path(file.filename).suffix.lower()
    if ext not in allowed_extensions:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File type not allowed: {file.filename}. Allowed types: {', '.join(sorted(allowed_extensions))}"
        )

    content = await file.read()
    if len(content) > max_size:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File too large: {file.filename}. Maximum size is {max_size // (1024 * 1024)}MB"
        )
    return content


class MediaStore:
    def __init__(self, root: str = None, base_url: str = None):
        self.root = Path(root or config.MEDIA_ROOT)
        self.base_url = (base_url or config.MEDIA_BASE_URL).rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, public_id: str) -> Path:
        path = (self.root / public_id).resolve()
        if self.root.resolve() not in path.parents:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid file path")
        return path

    async def upload(self, content: bytes, folder: str, filename: str) -> dict:
        file_format = Path(filename).suffix.lower().lstrip(".")
        public_id = f"{folder.strip('/')}/{uuid.uuid4().hex}"
        if file_format:
            public_id = f"{public_id}.{file_format}"

        path = self._path(public_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "wb") as f:
            await f.write(content)

        logger.info(f"Stored media object {public_id} ({len(content)} bytes)")
        return {
            "url": f"{self.base_url}/{public_id}",
            "public_id": public_id,
            "resource_type": resource_kind(file_format),
            "format": file_format,
        }

    def destroy(self, public_id: str) -> bool:
        path = self._path(public_id)
        if not path.exists():
            logger.warning(f"Media object not found for deletion: {public_id}")
            return False
        try:
            os.remove(path)
        except OSError:
            logger.warning(f"Failed to delete media object: {public_id}")
            return False
        logger.info(f"Deleted media object {public_id}")
        return True

    def probe(self, public_id: str) -> dict:
        path = self._path(public_id)
        file_format = path.suffix.lower().lstrip(".")
        return {
            "exists": path.is_file(),
            "resource_type": resource_kind(file_format),
            "format": file_format,
        }

    def signed_url(self, public_id: str, resource_type: str = "raw", expires_in: int = None) -> str:
        expire = datetime.utcnow() + timedelta(seconds=expires_in or config.SIGNED_URL_EXPIRE_SECONDS)
        token = jwt.encode(
            {"pid": public_id, "rt": resource_type, "exp": expire},
            config.SECRET_KEY,
            algorithm=config.ALGORITHM,
        )
        return f"{SIGNED_URL_PATH}/{token}"

    def resolve_signed(self, token: str) -> Optional[Path]:
        """Return the file behind a signed token, or None when expired, invalid or missing."""
        try:
            payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
        except JWTError:
            return None
        public_id = payload.get("pid")
        if not public_id:
            return None
        path = self._path(public_id)
        return path if path.is_file() else None


def get_media_store() -> MediaStore:
    return MediaStore()
