from __future__ import annotations

import asyncio
import base64
import re
import struct
import zlib
from dataclasses import dataclass, field
from typing import List, Literal, Optional

from .client_base import ImageChatClient, LLMResponse

ReplyStyle = Literal["base64", "markdown", "url", "text"]

_FRAME_RE = re.compile(r"Generate frame (\d+) of (\d+)")


def placeholder_png(width: int = 16, height: int = 16) -> bytes:
    """Plain white RGB PNG. Stored uncompressed so its base64 form stays long."""
    def chunk(tag: bytes, data: bytes) -> bytes:
        return struct.pack("!I", len(data)) + tag + data + struct.pack("!I", zlib.crc32(tag + data) & 0xFFFFFFFF)

    row = b"\x00" + b"\xff" * (width * 3)
    raw = row * height
    ihdr = struct.pack("!IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return b"".join([b"\x89PNG\r\n\x1a\n", chunk(b"IHDR", ihdr), chunk(b"IDAT", zlib.compress(raw, 0)), chunk(b"IEND", b"")])


def _extract_frame_number(prompt: str) -> Optional[int]:
    m = _FRAME_RE.search(prompt)
    if not m:
        return None
    return int(m.group(1))


@dataclass
class MockLLMClient(ImageChatClient):
    """
    Offline client that never touches the network.

    `reply_style` picks the shape of the reply:
      - base64: a placeholder PNG, base64-encoded, as the whole reply
      - markdown: `![frame N](<image_base_url>/frame_N.png)`
      - url: `Here you go: <image_base_url>/frame_N.png`
      - text: a refusal-like sentence with no image at all
    """
    model_name: str = "mock-image"
    reply_style: ReplyStyle = "base64"
    image_base_url: str = "https://images.example.com"
    delay_seconds: float = 0.0
    calls: List[str] = field(default_factory=list)

    async def generate(self, *, prompt: str, image_data_url: str) -> LLMResponse:
        self.calls.append(prompt)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)

        frame = _extract_frame_number(prompt) or 1
        url = f"{self.image_base_url.rstrip('/')}/frame_{frame}.png"

        if self.reply_style == "markdown":
            text = f"![frame {frame}]({url})"
        elif self.reply_style == "url":
            text = f"Here you go: {url}"
        elif self.reply_style == "text":
            text = "I am unable to draw this character right now."
        else:
            text = base64.b64encode(placeholder_png()).decode("ascii")

        return LLMResponse(raw_text=text, model_name=self.model_name, usage=None)
