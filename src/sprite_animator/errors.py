from __future__ import annotations

from typing import Optional


class SpriteAnimatorError(Exception):
    """Base class for every error raised by sprite-animator."""


class ConfigurationError(SpriteAnimatorError, RuntimeError):
    """Raised when a required setting (the API key) is missing."""


class EmptyReplyError(SpriteAnimatorError):
    """The model answered without any text content."""


class UnparsableReplyError(SpriteAnimatorError):
    """
    The reply contained no markdown image, URL or base64 payload.

    The message carries a truncated prefix of the reply; the full text is
    kept on `raw_text`.
    """

    def __init__(self, raw_text: str, preview_chars: int = 100):
        self.raw_text = raw_text
        super().__init__(f"Could not find image in response: {raw_text[:preview_chars]}...")


class ResourceFetchError(SpriteAnimatorError):
    """Fetching a generated image URL failed. Never fatal for a frame."""

    def __init__(self, url: str, reason: Optional[str] = None, preview_chars: int = 80):
        self.url = url
        shown = url if len(url) <= preview_chars else url[:preview_chars] + "..."
        msg = f"Failed to fetch image from {shown}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class CancellationError(SpriteAnimatorError):
    """Raised at a group boundary once the caller aborted the run."""

    def __init__(self, message: str = "Generation aborted by user."):
        super().__init__(message)
