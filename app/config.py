# app/config.py
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

def _env_csv(name: str, default: str = "*") -> List[str]:
    raw = os.getenv(name, default)
    return [x.strip() for x in raw.split(",") if x.strip()]

def _env_int(name: str, default: Optional[int] = None) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)

@dataclass(frozen=True)
class Config:
    # OpenAI
    openai_api_key: str
    openai_image_model: str
    openai_fallback_image_model: str
    image_style: str                 # provider style hint: vivid | natural
    # API / CORS
    allowed_origins: List[str]
    # Output handling
    base_output_dir: Path
    # Concurrency (provider calls + uploads); capped at 3
    max_workers: int
    # Aspect ratio randomness; None = unseeded
    aspect_ratio_seed: Optional[int]
    # Logging
    log_level: str
    # Storage
    gcs_bucket: str
    gcs_url_mode: str                # public | signed
    signed_url_ttl: int
    download_timeout: int
    # Persistence retry
    persist_max_attempts: int
    persist_initial_delay: float
    persist_backoff_multiplier: float
    persist_max_delay: float

def load_config() -> Config:
    return Config(
        openai_api_key = os.getenv("OPENAI_API_KEY") or os.getenv("DALL_E_API_KEY", ""),
        openai_image_model = os.getenv("OPENAI_IMAGE_MODEL", "dall-e-3"),
        openai_fallback_image_model = os.getenv("OPENAI_FALLBACK_IMAGE_MODEL", "dall-e-2"),
        image_style = os.getenv("IMAGE_STYLE", "natural"),
        allowed_origins = _env_csv("ALLOWED_ORIGINS", "*"),
        base_output_dir = Path(os.getenv("DATA_DIR", str(Path(__file__).resolve().parent / "output"))),
        max_workers = min(3, max(1, _env_int("MAX_WORKERS", 2))),
        aspect_ratio_seed = _env_int("ASPECT_RATIO_SEED"),
        log_level = os.getenv("LOG_LEVEL", "INFO"),
        gcs_bucket = os.getenv("GCS_BUCKET", "story-illustrations"),
        gcs_url_mode = os.getenv("GCS_URL_MODE", "public"),
        signed_url_ttl = _env_int("GCS_SIGNED_URL_TTL", 7 * 24 * 3600),
        download_timeout = _env_int("IMAGE_DOWNLOAD_TIMEOUT", 30),
        persist_max_attempts = _env_int("PERSIST_MAX_ATTEMPTS", 3),
        persist_initial_delay = float(os.getenv("PERSIST_INITIAL_DELAY", "1.0")),
        persist_backoff_multiplier = float(os.getenv("PERSIST_BACKOFF_MULTIPLIER", "2.0")),
        persist_max_delay = float(os.getenv("PERSIST_MAX_DELAY", "10.0")),
    )

# Load once and ensure output directory exists
config = load_config()
config.base_output_dir.mkdir(parents=True, exist_ok=True)
