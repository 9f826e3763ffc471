# app/errors.py
"""
Failure classes of the illustration pipeline.

Stage-local failures (a single scene, a single upload) are recovered inside
their stage and only logged. The others unwind to the HTTP layer, which maps
each class to one response via ``status_code`` and ``public_message``.
"""
from typing import Optional


class IllustrationError(Exception):
    status_code = 500
    public_message = "Failed to generate images"

    def __init__(self, message: Optional[str] = None, *, cause: Optional[BaseException] = None):
        super().__init__(message or self.public_message)
        self.cause = cause


class ProviderUnavailable(IllustrationError):
    """The image service as a whole cannot serve requests (no key, auth, outage)."""
    status_code = 503
    public_message = "Image generation service unavailable. Please try again later."


class PerSceneGenerationFailure(IllustrationError):
    """One scene failed; recorded on its GenerationResult and skipped."""

    def __init__(self, scene_index: int, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(f"scene {scene_index}: {message}", cause=cause)
        self.scene_index = scene_index


class StorageUploadFailure(IllustrationError):
    """One upload failed; recovered by the publisher."""

    def __init__(self, scene_index: int, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(f"scene {scene_index}: {message}", cause=cause)
        self.scene_index = scene_index


class ZeroResultsFailure(IllustrationError):
    public_message = "Failed to generate any images. Please try again."


class PersistenceFailure(IllustrationError):
    # compute was spent, nothing was saved
    public_message = "Images were generated but could not be saved to your story. Please try again."

    def __init__(self, message: Optional[str] = None, *, image_urls=None, attempts: int = 0,
                 cause: Optional[BaseException] = None):
        super().__init__(message, cause=cause)
        self.image_urls = list(image_urls or [])
        self.attempts = attempts


class StoryNotFound(IllustrationError):
    status_code = 404
    public_message = "Story not found"


class GenerationInProgress(IllustrationError):
    status_code = 409
    public_message = "Images are already being generated for this story."
