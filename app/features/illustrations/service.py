# app/features/illustrations/service.py
from __future__ import annotations

import random
import threading
from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator, List, Optional, Set

from app.config import config
from app.errors import GenerationInProgress, StoryNotFound, ZeroResultsFailure
from app.features.illustrations.characters import build_character_descriptor
from app.features.illustrations.generation import IllustrationGenerator, ImageProvider, OpenAIImageProvider
from app.features.illustrations.persistence import StoryImageUpdater
from app.features.illustrations.prompt import compose_prompt
from app.features.illustrations.scenes import extract_scenes
from app.features.illustrations.schemas import (
    IllustrationPrompt,
    ProviderStyle,
    StoryImageSet,
    StoryText,
    SubjectAppearance,
)
from app.features.illustrations.storage import GCSStorageBackend, StorageBackend, StoragePublisher
from app.features.illustrations.styles import STORY_TONE, select_art_style
from app.lib.retry import RetryPolicy
from app.lib.story_store import JsonStoryStore, StoryStore
from app.logger import get_logger, get_story_logger

log = get_logger(__name__)


class StoryLocks:
    """
    Non-blocking per-story guard; a second run for the same story is refused.
    Only in-flight ids are tracked, so the registry empties between runs.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._running: Set[str] = set()

    @contextmanager
    def hold(self, story_id: str) -> Iterator[None]:
        with self._guard:
            if story_id in self._running:
                raise GenerationInProgress()
            self._running.add(story_id)
        try:
            yield
        finally:
            with self._guard:
                self._running.discard(story_id)

    def in_flight(self) -> Set[str]:
        with self._guard:
            return set(self._running)


def build_prompts(
    story: StoryText,
    *,
    appearance_override: Optional[SubjectAppearance] = None,
) -> List[IllustrationPrompt]:
    """
    Scene selection plus prompt composition for one story. Style and
    character tier are decided here once and shared by every prompt.
    """
    character = build_character_descriptor(story, appearance_override=appearance_override)
    art_style = select_art_style(story.theme, STORY_TONE)
    scenes = extract_scenes(story.content, story.child_name)
    return [
        compose_prompt(
            scene,
            art_style=art_style,
            mood=scene.mood,
            character=character,
            total_scenes=len(scenes),
            theme=story.theme,
            subject_name=story.child_name,
        )
        for scene in scenes
    ]


class IllustrationService:
    def __init__(
        self,
        store: StoryStore,
        provider: ImageProvider,
        backend: StorageBackend,
        *,
        rng: Optional[random.Random] = None,
        policy: Optional[RetryPolicy] = None,
        max_workers: Optional[int] = None,
    ):
        self.store = store
        self.provider = provider
        self.backend = backend
        self.rng = rng or random.Random(config.aspect_ratio_seed)
        self.max_workers = max_workers or config.max_workers
        self.publisher = StoragePublisher(backend, max_workers=self.max_workers)
        self.updater = StoryImageUpdater(store, policy=policy)
        self.locks = StoryLocks()

    def _load_story(self, story_id: str) -> StoryText:
        try:
            record = self.store.get_story(story_id)
        except ValueError as e:
            raise StoryNotFound(cause=e) from e
        if record is None:
            raise StoryNotFound()
        return StoryText.from_record(record)

    def generate_story_images(
        self,
        story_id: str,
        *,
        style: Optional[ProviderStyle] = None,
        appearance: Optional[SubjectAppearance] = None,
    ) -> StoryImageSet:
        """
        Illustrate one story end to end: prompts, generation, storage, record
        update. Raises an IllustrationError subclass when nothing usable is left.
        """
        slog = get_story_logger(__name__, story_id)
        with self.locks.hold(story_id):
            story = self._load_story(story_id)
            prompts = build_prompts(story, appearance_override=appearance)
            if not prompts:
                slog.error("story text has no illustratable scenes")
                raise ZeroResultsFailure()
            slog.info(
                f"generating {len(prompts)} illustrations "
                f"(style={prompts[0].art_style}, character={prompts[0].includes_character})"
            )

            generator = IllustrationGenerator(self.provider, rng=self.rng, max_workers=self.max_workers)
            batch = generator.generate(prompts, style=style, logger=slog)
            outcome = self.publisher.publish(story_id, batch.results, logger=slog)
            return self.updater.save(story_id, outcome, logger=slog)

    def delete_story_images(self, story_id: str) -> int:
        """Remove stored images and clear the record's image fields."""
        slog = get_story_logger(__name__, story_id)
        with self.locks.hold(story_id):
            self._load_story(story_id)
            removed = self.backend.delete_story(story_id)
            self.updater.clear(story_id)
            slog.info(f"deleted {removed} stored images")
            return removed


@lru_cache(maxsize=1)
def get_illustration_service() -> IllustrationService:
    log.info(f"illustration service: bucket={config.gcs_bucket} model={config.openai_image_model} workers={config.max_workers}")
    return IllustrationService(
        store=JsonStoryStore(),
        provider=OpenAIImageProvider(),
        backend=GCSStorageBackend(),
    )
