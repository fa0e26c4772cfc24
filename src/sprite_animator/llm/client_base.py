from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class LLMResponse:
    """
    Standard response object returned by any client implementation.
    """
    raw_text: Optional[str]
    model_name: str
    usage: Optional[dict] = None  # keep flexible (tokens, cost, etc.)


class ImageChatClient(Protocol):
    """
    Protocol / interface for image-generating chat clients.

    A client takes instruction text plus one reference image (as a data URL)
    and returns the model's free-form text reply. Finding the image inside
    that reply is the caller's job.
    """

    model_name: str

    async def generate(self, *, prompt: str, image_data_url: str) -> LLMResponse:
        ...
