# app/lib/openai_client.py
from typing import Optional

from openai import OpenAI
from app.config import config

_client: Optional[OpenAI] = None

def get_client() -> Optional[OpenAI]:
    """Shared OpenAI client, or None when no API key is configured."""
    global _client
    if _client is None and config.openai_api_key:
        _client = OpenAI(api_key=config.openai_api_key)
    return _client
