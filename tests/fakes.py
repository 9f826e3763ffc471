# tests/fakes.py
import re
import threading
import time
from io import BytesIO

from PIL import Image

from app.features.illustrations.generation import ImageProvider
from app.features.illustrations.storage import StorageBackend
from app.lib.retry import RetryPolicy
from app.lib.story_store import JsonStoryStore

_PAGE_RE = re.compile(r"page (\d+) of")

OCEAN_STORY = "\n\n".join([
    "Emma skipped down to the beach at sunrise, her bucket swinging as the waves rolled over the sand.",
    "Beneath the water Emma discovered a glowing shell that hummed a little song whenever it was near.",
    "A friendly sea turtle named Pip swam up and offered to guide Emma through the coral maze to the reef.",
    "They raced past shimmering fish and ducked under arches of pink coral, laughing as bubbles tickled them.",
    "At the heart of the reef an old octopus explained that the shell belonged to the moon and must go back.",
    "Emma swam home under the silver moonlight, waved goodbye to Pip, and fell asleep dreaming of the ocean.",
])

# -------- Fakes --------

def page_of(prompt: str) -> int:
    m = _PAGE_RE.search(prompt)
    return int(m.group(1)) if m else 0


class FakeImageProvider(ImageProvider):
    """Returns one predictable URL per page; pages listed in `fail_pages` raise."""

    def __init__(self, *, fail_pages=(), error=None, available=True, delays=None):
        self.fail_pages = set(fail_pages)
        self.error = error or RuntimeError("provider hiccup")
        self._available = available
        self.delays = delays or {}
        self.calls = []
        self._lock = threading.Lock()

    @property
    def available(self) -> bool:
        return self._available

    def generate(self, prompt, *, count, size, style):
        page = page_of(prompt)
        with self._lock:
            self.calls.append({"prompt": prompt, "count": count, "size": size, "style": style, "page": page})
        time.sleep(self.delays.get(page, 0))
        if page in self.fail_pages or "*" in self.fail_pages:
            raise self.error
        return [f"https://provider.example/tmp/page-{page}.png"]


class FakeStorageBackend(StorageBackend):
    def __init__(self, *, fail_scenes=(), fail_all=False, fail_delete=False):
        self.fail_scenes = set(fail_scenes)
        self.fail_all = fail_all
        self.fail_delete = fail_delete
        self.uploads = []
        self.deleted = []
        self.events = []
        self._lock = threading.Lock()

    def upload(self, ephemeral_url, *, story_id, scene_index):
        with self._lock:
            self.uploads.append((story_id, scene_index, ephemeral_url))
            self.events.append(("upload", story_id))
        if self.fail_all or scene_index in self.fail_scenes:
            raise OSError("bucket unreachable")
        return f"https://storage.example/stories/{story_id}/{scene_index}.png"

    def delete_story(self, story_id):
        self.deleted.append(story_id)
        self.events.append(("delete", story_id))
        if self.fail_delete:
            raise OSError("list permission denied")
        return len([u for u in self.uploads if u[0] == story_id])


class FlakyStoryStore(JsonStoryStore):
    """Fails the first `failures` image updates with a transient error."""

    def __init__(self, base_dir, *, failures=0):
        super().__init__(base_dir)
        self.failures = failures
        self.update_calls = 0

    def update_images(self, story_id, *, has_images, image_urls):
        self.update_calls += 1
        if self.update_calls <= self.failures:
            raise OSError("database timeout")
        return super().update_images(story_id, has_images=has_images, image_urls=image_urls)

# -------- Utilities --------

def tiny_png_bytes() -> bytes:
    im = Image.new("RGB", (8, 8), (20, 120, 200))
    buf = BytesIO()
    im.save(buf, format="PNG")
    return buf.getvalue()


def no_sleep_policy(max_attempts=3) -> RetryPolicy:
    return RetryPolicy(max_attempts=max_attempts, initial_delay=0.0, sleep=lambda s: None,
                       non_retryable=(KeyError, ValueError))

