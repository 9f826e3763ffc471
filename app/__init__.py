# app/__init__.py
from .config import config
from .logger import get_logger
from .errors import IllustrationError
from .main import app


__all__ = ["app",
           "config",
           "get_logger",
           "IllustrationError",
           ]
