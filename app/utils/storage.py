# app/utils/storage.py
"""
Product image storage.

Images go to DigitalOcean Spaces when the DO_SPACES_* settings are present,
otherwise they are written under the local static upload directory.
"""
import logging
import os
from typing import List, Protocol, Tuple

import aioboto3
from fastapi import HTTPException, UploadFile

from app.core.config import Settings, get_settings
from app.core.constants import MAX_IMAGES_PER_UPLOAD
from app.utils.security import generate_safe_filename, validate_and_read_image

log = logging.getLogger(__name__)


class ImageStore(Protocol):
    async def save(self, *, filename: str, body: bytes, content_type: str) -> Tuple[str, str]:
        """Store an image, returning (public_url, key)."""

    async def delete(self, key: str) -> None:
        ...


class SpacesImageStore:
    def __init__(self, settings: Settings):
        self.settings = settings
        self._session = aioboto3.Session()

    def public_url(self, key: str) -> str:
        key = key.lstrip("/")
        return f"{self.settings.do_spaces_cdn_base}/{key}"

    def _client(self):
        return self._session.client(
            "s3",
            region_name=self.settings.do_spaces_region,
            endpoint_url=self.settings.do_spaces_endpoint,
            aws_access_key_id=self.settings.do_spaces_key,
            aws_secret_access_key=self.settings.do_spaces_secret,
        )

    async def save(self, *, filename: str, body: bytes, content_type: str) -> Tuple[str, str]:
        prefix = self.settings.do_spaces_prefix.strip("/")
        key = f"{prefix}/products/{filename}".lstrip("/")
        async with self._client() as s3:
            await s3.put_object(
                Bucket=self.settings.do_spaces_bucket,
                Key=key,
                Body=body,
                ContentType=content_type or "application/octet-stream",
                ACL="public-read",
            )
        log.info("uploaded product image to spaces: key=%s", key)
        return self.public_url(key), key

    async def delete(self, key: str) -> None:
        async with self._client() as s3:
            await s3.delete_object(Bucket=self.settings.do_spaces_bucket, Key=key)
        log.info("deleted product image from spaces: key=%s", key)


class LocalImageStore:
    def __init__(self, upload_dir: str, url_prefix: str = "/static/uploads/products"):
        self.upload_dir = upload_dir
        self.url_prefix = url_prefix.rstrip("/")
        os.makedirs(upload_dir, exist_ok=True)

    async def save(self, *, filename: str, body: bytes, content_type: str) -> Tuple[str, str]:
        path = os.path.join(self.upload_dir, filename)
        with open(path, "wb") as f:
            f.write(body)
        return f"{self.url_prefix}/{filename}", filename

    async def delete(self, key: str) -> None:
        path = os.path.join(self.upload_dir, key)
        if os.path.exists(path):
            os.remove(path)


def get_image_store() -> ImageStore:
    settings = get_settings()
    if settings.spaces_configured:
        return SpacesImageStore(settings)
    return LocalImageStore(settings.upload_dir)


async def save_uploads(store: ImageStore, files: List[UploadFile]) -> List[Tuple[str, str]]:
    """Validate and store every upload; on failure the ones already stored are removed."""
    if len(files) > MAX_IMAGES_PER_UPLOAD:
        raise HTTPException(status_code=400, detail=f"At most {MAX_IMAGES_PER_UPLOAD} images per upload")

    saved: List[Tuple[str, str]] = []
    try:
        for upload in files:
            body = await validate_and_read_image(upload)
            saved.append(
                await store.save(
                    filename=generate_safe_filename(upload.filename),
                    body=body,
                    content_type=upload.content_type,
                )
            )
    except Exception:
        await discard_images(store, [key for _, key in saved])
        raise
    return saved


async def discard_images(store: ImageStore, keys: List[str]) -> None:
    """Best-effort delete; a storage hiccup must not undo a committed DB change."""
    for key in keys:
        try:
            await store.delete(key)
        except Exception:
            log.exception("failed to delete product image: key=%s", key)
