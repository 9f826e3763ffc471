# app/features/illustrations/generation.py
from __future__ import annotations

import concurrent.futures
import random
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import openai

from app.config import config
from app.errors import PerSceneGenerationFailure, ProviderUnavailable, ZeroResultsFailure
from app.features.illustrations.schemas import (
    AspectRatio,
    GenerationBatch,
    GenerationResult,
    GenerationStatus,
    IllustrationPrompt,
    ImageSize,
    ProviderStyle,
)
from app.lib.openai_client import get_client
from app.logger import get_logger

log = get_logger(__name__)

ASPECT_RATIOS: List[AspectRatio] = ["square", "portrait", "landscape"]
ASPECT_RATIO_SIZES: Dict[str, ImageSize] = {
    "square": "1024x1024",
    "portrait": "1024x1792",
    "landscape": "1792x1024",
}

# -------------------------------------------------------------------
# Provider
# -------------------------------------------------------------------

class ImageProvider(ABC):
    """Text-to-image service returning short-lived image URLs."""

    @property
    def available(self) -> bool:
        return True

    @abstractmethod
    def generate(self, prompt: str, *, count: int, size: ImageSize, style: ProviderStyle) -> List[str]:
        """Return `count` ephemeral URLs or raise. Raise ProviderUnavailable for outages."""


class OpenAIImageProvider(ImageProvider):
    def __init__(self, client=None, *, model: Optional[str] = None, fallback_model: Optional[str] = None):
        self._client = client
        self.model = model or config.openai_image_model
        self.fallback_model = fallback_model or config.openai_fallback_image_model

    @property
    def client(self):
        return self._client or get_client()

    @property
    def available(self) -> bool:
        return self.client is not None

    def _call(self, model: str, prompt: str, count: int, size: str, style: Optional[str]) -> List[str]:
        kwargs = dict(model=model, prompt=prompt, n=count, size=size, response_format="url")
        if style:
            kwargs["style"] = style
        resp = self.client.images.generate(**kwargs)
        urls = [d.url for d in (resp.data or []) if getattr(d, "url", None)]
        if not urls:
            raise RuntimeError(f"{model} returned no image URL")
        return urls

    def generate(self, prompt: str, *, count: int = 1, size: ImageSize = "1024x1024",
                 style: ProviderStyle = "natural") -> List[str]:
        if not self.available:
            raise ProviderUnavailable("OpenAI API key not configured")
        try:
            try:
                return self._call(self.model, prompt, count, size, style)
            except (openai.NotFoundError, openai.BadRequestError) as e:
                if not self.fallback_model or self.fallback_model == self.model or "model" not in str(e).lower():
                    raise
                log.warning(f"{self.model} rejected ({e}); retrying with {self.fallback_model}")
                # dall-e-2 knows neither style nor tall/wide sizes
                return self._call(self.fallback_model, prompt, count, "1024x1024", None)
        except (openai.AuthenticationError, openai.PermissionDeniedError, openai.APIConnectionError) as e:
            raise ProviderUnavailable(str(e), cause=e) from e

# -------------------------------------------------------------------
# Orchestrator
# -------------------------------------------------------------------

class IllustrationGenerator:
    """
    One provider call per prompt on a small worker pool. Failed scenes are
    logged and skipped; results always come back ordered by scene index.
    """

    def __init__(
        self,
        provider: ImageProvider,
        *,
        rng: Optional[random.Random] = None,
        max_workers: Optional[int] = None,
        style: Optional[ProviderStyle] = None,
    ):
        self.provider = provider
        self.rng = rng or random.Random(config.aspect_ratio_seed)
        self.max_workers = max(1, min(3, max_workers or config.max_workers))
        self.style = style or config.image_style
        self.status = GenerationStatus.PENDING

    def choose_size(self) -> ImageSize:
        return ASPECT_RATIO_SIZES[self.rng.choice(ASPECT_RATIOS)]

    def _generate_one(self, prompt: IllustrationPrompt, size: ImageSize, style: ProviderStyle) -> str:
        try:
            urls = self.provider.generate(prompt.text, count=1, size=size, style=style)
        except ProviderUnavailable:
            raise
        except Exception as e:
            raise PerSceneGenerationFailure(prompt.scene_index, str(e), cause=e) from e
        if not urls:
            raise PerSceneGenerationFailure(prompt.scene_index, "provider returned no images")
        return urls[0]

    def generate(
        self,
        prompts: List[IllustrationPrompt],
        *,
        style: Optional[ProviderStyle] = None,
        logger=None,
    ) -> GenerationBatch:
        """
        Run every prompt once. Raises ProviderUnavailable when the provider is
        down (up front, or when every scene failed on a systemic error) and
        ZeroResultsFailure when nothing came back at all.
        """
        logger = logger or log
        style = style or self.style
        if not self.provider.available:
            self.status = GenerationStatus.FAILED
            raise ProviderUnavailable("image provider not configured")

        self.status = GenerationStatus.IN_PROGRESS
        # sizes drawn in scene order so a seeded rng gives a stable sequence
        sizes = [self.choose_size() for _ in prompts]
        results: List[Optional[GenerationResult]] = [None] * len(prompts)

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as ex:
            fut_map = {
                ex.submit(self._generate_one, p, sizes[i], style): i
                for i, p in enumerate(prompts)
            }
            for fut in concurrent.futures.as_completed(fut_map):
                i = fut_map[fut]
                scene_index = prompts[i].scene_index
                try:
                    results[i] = GenerationResult(scene_index=scene_index, provider_url=fut.result())
                    logger.info(f"scene {scene_index + 1}/{len(prompts)} generated ({sizes[i]})")
                except ProviderUnavailable as e:
                    logger.warning(f"scene {scene_index + 1}/{len(prompts)} provider unavailable: {e}")
                    results[i] = GenerationResult(scene_index=scene_index, error=str(e), systemic=True)
                except Exception as e:
                    logger.warning(f"scene {scene_index + 1}/{len(prompts)} failed: {e}")
                    results[i] = GenerationResult(scene_index=scene_index, error=str(e))

        batch = GenerationBatch(results=[r for r in results if r is not None])
        ok = len(batch.successes)
        if ok == len(prompts) and ok > 0:
            batch.status = GenerationStatus.FULL_SUCCESS
        elif ok > 0:
            batch.status = GenerationStatus.PARTIAL_SUCCESS
        else:
            batch.status = GenerationStatus.FAILED
        self.status = batch.status
        logger.info(f"generation finished: {ok}/{len(prompts)} ({batch.status.value})")

        if batch.status is GenerationStatus.FAILED:
            if any(r.systemic for r in batch.results):
                raise ProviderUnavailable("image provider failed for every scene")
            raise ZeroResultsFailure()
        return batch
