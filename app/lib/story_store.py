# app/lib/story_store.py
"""
Durable story records.

The illustration pipeline only needs two things from the story database: read
the story (text, theme, subjects) and overwrite its image fields. `StoryStore`
is that contract; `JsonStoryStore` keeps one JSON document per story on disk,
written atomically so a crashed write never leaves a half-written record.
"""
from __future__ import annotations

import json
import os
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.lib.paths import record_path


class StoryStore(ABC):
    @abstractmethod
    def get_story(self, story_id: str) -> Optional[Dict[str, Any]]:
        """Return the raw story record or None."""

    @abstractmethod
    def update_images(self, story_id: str, *, has_images: bool, image_urls: List[str]) -> None:
        """Overwrite has_images/image_urls. Raises KeyError for unknown stories."""


class JsonStoryStore(StoryStore):
    def __init__(self, base_dir: Optional[str] = None):
        self.base_dir = base_dir
        self._lock = threading.Lock()

    def _path(self, story_id: str, *, create: bool = False) -> str:
        return record_path(story_id, self.base_dir, create=create)

    def load(self, story_id: str) -> Optional[Dict[str, Any]]:
        path = self._path(story_id)
        if not os.path.exists(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def save(self, story_id: str, record: Dict[str, Any]) -> None:
        path = self._path(story_id, create=True)
        tmp = f"{path}.part"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(record, f, ensure_ascii=False, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)

    def put_story(self, story_id: str, record: Dict[str, Any]) -> None:
        with self._lock:
            self.save(story_id, {**record, "id": story_id})

    def get_story(self, story_id: str) -> Optional[Dict[str, Any]]:
        return self.load(story_id)

    def update_images(self, story_id: str, *, has_images: bool, image_urls: List[str]) -> None:
        with self._lock:
            record = self.load(story_id)
            if record is None:
                raise KeyError(story_id)
            record["has_images"] = bool(has_images)
            record["image_urls"] = list(image_urls)
            record["images_updated_at"] = datetime.now(timezone.utc).isoformat()
            self.save(story_id, record)
