# app/features/illustrations/storage.py
from __future__ import annotations

import concurrent.futures
import io
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import requests
from PIL import Image, UnidentifiedImageError

from app.config import config
from app.errors import StorageUploadFailure
from app.features.illustrations.schemas import GenerationResult, PublishOutcome, UploadResult
from app.lib.gcs import delete_gcs_prefix, upload_bytes_to_gcs
from app.logger import get_logger

log = get_logger(__name__)

_FORMATS = {
    "PNG": ("png", "image/png"),
    "JPEG": ("jpg", "image/jpeg"),
    "WEBP": ("webp", "image/webp"),
    "GIF": ("gif", "image/gif"),
}

# -------------------------------------------------------------------
# Backend
# -------------------------------------------------------------------

class StorageBackend(ABC):
    @abstractmethod
    def upload(self, ephemeral_url: str, *, story_id: str, scene_index: int) -> str:
        """Copy one image into durable storage and return its permanent URL."""

    @abstractmethod
    def delete_story(self, story_id: str) -> int:
        """Remove every stored image of a story; returns how many were removed."""


def story_prefix(story_id: str) -> str:
    return f"stories/{story_id}/"


def sniff_image(data: bytes) -> Tuple[str, str]:
    """(extension, content type) of an image payload. Raises ValueError for non-images."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = (img.format or "").upper()
    except UnidentifiedImageError as e:
        raise ValueError("payload is not an image") from e
    if fmt not in _FORMATS:
        raise ValueError(f"unsupported image format: {fmt or 'unknown'}")
    return _FORMATS[fmt]


class GCSStorageBackend(StorageBackend):
    def __init__(self, *, bucket_name: Optional[str] = None, url_mode: Optional[str] = None,
                 timeout: Optional[int] = None):
        self.bucket_name = bucket_name or config.gcs_bucket
        self.url_mode = url_mode or config.gcs_url_mode
        self.timeout = timeout or config.download_timeout
        if self.url_mode.lower() == "signed":
            log.warning(
                f"GCS_URL_MODE=signed: stored image links expire after {config.signed_url_ttl}s "
                f"but are still recorded as durable"
            )

    def _download(self, url: str) -> bytes:
        r = requests.get(url, timeout=self.timeout)
        r.raise_for_status()
        return r.content

    def upload(self, ephemeral_url: str, *, story_id: str, scene_index: int) -> str:
        data = self._download(ephemeral_url)
        ext, content_type = sniff_image(data)
        info = upload_bytes_to_gcs(
            data,
            object_name=f"{story_prefix(story_id)}{scene_index}.{ext}",
            content_type=content_type,
            url_mode=self.url_mode,
            bucket_name=self.bucket_name,
        )
        log.debug(f"uploaded {info['gs_uri']}")
        return info["url"]

    def delete_story(self, story_id: str) -> int:
        return delete_gcs_prefix(story_prefix(story_id), bucket_name=self.bucket_name)

# -------------------------------------------------------------------
# Publisher
# -------------------------------------------------------------------

class StoragePublisher:
    """
    Moves generated images into durable storage. The story prefix is cleared
    once per run before uploading. Each upload stands alone; if none succeeds
    the ephemeral URLs are handed back unchanged.
    """

    def __init__(self, backend: StorageBackend, *, max_workers: Optional[int] = None):
        self.backend = backend
        self.max_workers = max(1, min(3, max_workers or config.max_workers))

    def _upload_one(self, story_id: str, result: GenerationResult) -> UploadResult:
        try:
            url = self.backend.upload(result.provider_url, story_id=story_id, scene_index=result.scene_index)
        except Exception as e:
            raise StorageUploadFailure(result.scene_index, str(e), cause=e) from e
        return UploadResult(
            scene_index=result.scene_index,
            original_url=result.provider_url,
            storage_url=url,
            success=bool(url),
        )

    def _clear_previous(self, story_id: str, logger) -> None:
        # Objects from an earlier run with more scenes or another format go first.
        try:
            removed = self.backend.delete_story(story_id)
        except Exception as e:
            logger.warning(f"could not clear previous images: {e}")
            return
        if removed:
            logger.info(f"cleared {removed} previous images")

    def publish(self, story_id: str, generated: List[GenerationResult], *, logger=None) -> PublishOutcome:
        logger = logger or log
        ordered = sorted((g for g in generated if g.ok), key=lambda g: g.scene_index)
        if ordered:
            self._clear_previous(story_id, logger)
        uploads: List[Optional[UploadResult]] = [None] * len(ordered)

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as ex:
            fut_map = {ex.submit(self._upload_one, story_id, g): i for i, g in enumerate(ordered)}
            for fut in concurrent.futures.as_completed(fut_map):
                i = fut_map[fut]
                try:
                    uploads[i] = fut.result()
                except StorageUploadFailure as e:
                    logger.warning(f"upload failed, {e}")
                    uploads[i] = UploadResult(scene_index=ordered[i].scene_index,
                                              original_url=ordered[i].provider_url)

        stored = [u.storage_url for u in uploads if u.success]
        if stored:
            logger.info(f"stored {len(stored)}/{len(ordered)} images")
            return PublishOutcome(uploads=uploads, final_urls=stored, durable=True)

        if ordered:
            logger.error(f"all {len(ordered)} uploads failed; keeping provider URLs")
        return PublishOutcome(uploads=uploads, final_urls=[g.provider_url for g in ordered], durable=False)
