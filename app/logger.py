# app/logger.py
import logging
import sys
from typing import Optional
from app.config import config

_DEFAULT_FMT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_configured = False

def configure_logging(level: Optional[str] = None, fmt: str = _DEFAULT_FMT) -> None:
    """Configure logging once, respecting LOG_LEVEL and overruling prior basicConfig."""
    global _configured
    if _configured:
        return

    level_name = (level or config.log_level).upper()
    level_value = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level_value)

    if not root.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setLevel(level_value)
        h.setFormatter(logging.Formatter(fmt))
        root.addHandler(h)
    else:
        for h in root.handlers:
            h.setLevel(level_value)
            if not h.formatter:
                h.setFormatter(logging.Formatter(fmt))

    # server loggers follow our level
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "gunicorn.error", "gunicorn.access"):
        logging.getLogger(name).setLevel(level_value)

    # SDK chatter (openai/httpx/urllib3) stays at WARNING unless we are debugging
    if level_value > logging.DEBUG:
        for name in ("httpx", "openai", "urllib3", "google.auth"):
            logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True

def get_logger(name: Optional[str] = None) -> logging.Logger:
    configure_logging()  # ensures configured on first use
    return logging.getLogger(name or __name__)


class StoryLogAdapter(logging.LoggerAdapter):
    """Prefixes every message with the story id of the run."""

    def process(self, msg, kwargs):
        return f"[story {self.extra['story_id']}] {msg}", kwargs


def get_story_logger(name: str, story_id: str) -> StoryLogAdapter:
    return StoryLogAdapter(get_logger(name), {"story_id": story_id})
