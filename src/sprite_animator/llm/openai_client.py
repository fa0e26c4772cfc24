from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from openai import AsyncOpenAI

from ..config import Settings
from .client_base import ImageChatClient, LLMResponse

logger = logging.getLogger(__name__)


@dataclass
class OpenAIImageClient(ImageChatClient):
    """
    Client for an OpenAI-compatible chat endpoint that answers with images.

    The reference image travels as an inline `image_url` part of the single
    user message. The credential is checked here, before any request.
    """
    settings: Settings = field(default_factory=Settings)
    model_name: str = ""
    _client: Any = field(default=None, init=False, repr=False)

    def __post_init__(self):
        api_key = self.settings.require_api_key()
        if not self.model_name:
            self.model_name = self.settings.model

        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=self.settings.base_url,
            timeout=self.settings.request_timeout,
            max_retries=0,
        )

    @staticmethod
    def build_messages(prompt: str, image_data_url: str) -> list:
        content = [
            {"type": "text", "text": prompt},
            {"type": "image_url", "image_url": {"url": image_data_url}},
        ]
        return [{"role": "user", "content": content}]

    async def generate(self, *, prompt: str, image_data_url: str) -> LLMResponse:
        logger.debug("Requesting image from %s (model=%s)", self.settings.base_url, self.model_name)
        resp = await self._client.chat.completions.create(
            model=self.model_name,
            messages=self.build_messages(prompt, image_data_url),
        )

        text: Optional[str] = None
        if resp.choices:
            text = resp.choices[0].message.content

        return LLMResponse(
            raw_text=text,
            model_name=self.model_name,
            usage=getattr(resp, "usage", None),
        )
