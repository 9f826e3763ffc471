# app/features/illustrations/persistence.py
from typing import Optional

from app.errors import PersistenceFailure, StoryNotFound
from app.features.illustrations.schemas import PublishOutcome, StoryImageSet
from app.lib.retry import RetryExhausted, RetryPolicy, persistence_policy
from app.lib.story_store import StoryStore
from app.logger import get_logger

log = get_logger(__name__)


class StoryImageUpdater:
    """Writes the final image set onto the story record under a retry policy."""

    def __init__(self, store: StoryStore, *, policy: Optional[RetryPolicy] = None):
        self.store = store
        self.policy = policy or persistence_policy()

    def save(self, story_id: str, outcome: PublishOutcome, *, logger=None) -> StoryImageSet:
        logger = logger or log
        image_set = StoryImageSet(
            story_id=story_id,
            final_urls=list(outcome.final_urls),
            # ephemeral fallback URLs are saved but never count as images
            has_images=bool(outcome.durable and outcome.final_urls),
        )
        if image_set.final_urls and not image_set.has_images:
            logger.warning(f"saving {len(image_set.final_urls)} provider URLs with has_images=false")

        def _write():
            self.store.update_images(story_id, has_images=image_set.has_images, image_urls=image_set.final_urls)

        try:
            self.policy.run(_write, label=f"story {story_id} image update")
        except KeyError as e:
            raise StoryNotFound(cause=e) from e
        except RetryExhausted as e:
            logger.error(f"image update gave up after {e.attempts} attempts: {e.last_error}")
            raise PersistenceFailure(
                str(e), image_urls=image_set.final_urls, attempts=e.attempts, cause=e.last_error,
            ) from e

        logger.info(f"saved {len(image_set.final_urls)} image URLs (has_images={image_set.has_images})")
        return image_set

    def clear(self, story_id: str) -> None:
        try:
            self.policy.run(
                lambda: self.store.update_images(story_id, has_images=False, image_urls=[]),
                label=f"story {story_id} image clear",
            )
        except KeyError as e:
            raise StoryNotFound(cause=e) from e
        except RetryExhausted as e:
            raise PersistenceFailure(str(e), attempts=e.attempts, cause=e.last_error) from e
