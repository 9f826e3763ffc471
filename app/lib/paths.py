# app/lib/paths.py
from __future__ import annotations
import re
from pathlib import Path
from typing import Optional
from app.config import config

_SAFE_ID_RE = re.compile(r"^[A-Za-z0-9_\-]{1,128}$")

def data_dir(base: Optional[str] = None) -> str:
    """
    Root folder for persisted records: <base_output_dir>/data
    Ensures it exists and returns it as a string.
    """
    root = Path(base or config.base_output_dir) / "data"
    root.mkdir(parents=True, exist_ok=True)
    return str(root)

def safe_story_id(story_id: str) -> str:
    if not _SAFE_ID_RE.match(story_id or ""):
        raise ValueError(f"invalid story id: {story_id!r}")
    return story_id

def story_dir(story_id: str, base: Optional[str] = None, *, create: bool = False) -> str:
    """
    Folder for a specific story: <data_dir>/stories/<story_id>
    Only created when `create` is set (write path).
    """
    sd = Path(data_dir(base)) / "stories" / safe_story_id(story_id)
    if create:
        sd.mkdir(parents=True, exist_ok=True)
    return str(sd)

def record_path(story_id: str, base: Optional[str] = None, *, create: bool = False) -> str:
    return str(Path(story_dir(story_id, base, create=create)) / "story.json")
