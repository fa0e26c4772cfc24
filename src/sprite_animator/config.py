from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigurationError

DEFAULT_BASE_URL = "https://new.wuxuai.com/v1"
DEFAULT_MODEL = "gemini-2.5-flash-image"

API_KEY_ENV = "SPRITE_ANIMATOR_API_KEY"
LEGACY_API_KEY_ENV = "API_KEY"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    """
    Connection settings for the image-generation endpoint.

    Built once at startup (usually with `Settings.from_env()`) and handed to
    the client explicitly; nothing reads the environment at request time.
    """
    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    request_timeout: float = 120.0
    fetch_timeout: float = 30.0

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> "Settings":
        """
        Read settings from the process environment (and a .env file if present).

        See env.example for the variable names.
        """
        if dotenv:
            load_dotenv(find_dotenv(usecwd=True))

        api_key = os.getenv(API_KEY_ENV) or os.getenv(LEGACY_API_KEY_ENV)

        return cls(
            api_key=api_key.strip() if api_key else None,
            base_url=os.getenv("SPRITE_ANIMATOR_BASE_URL") or DEFAULT_BASE_URL,
            model=os.getenv("SPRITE_ANIMATOR_MODEL") or DEFAULT_MODEL,
            request_timeout=_env_float("SPRITE_ANIMATOR_REQUEST_TIMEOUT", 120.0),
            fetch_timeout=_env_float("SPRITE_ANIMATOR_FETCH_TIMEOUT", 30.0),
        )

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError("API Key not found. Please select an API Key.")
        return self.api_key
