from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Literal, Optional

from ..errors import EmptyReplyError, UnparsableReplyError

ReferenceKind = Literal["markdown", "url", "base64"]

# Replies shorter than this are never taken for a base64 payload.
MIN_BASE64_CHARS = 100

# The base64 strategy cannot tell the format; PNG is assumed.
BASE64_MIME_TYPE = "image/png"

_MARKDOWN_IMAGE_RE = re.compile(r"!\[.*?\]\((.*?)\)")
_BARE_URL_RE = re.compile(r"(https?://[^\s]+)")


@dataclass(frozen=True)
class ImageReference:
    kind: ReferenceKind
    value: str

    @property
    def is_url(self) -> bool:
        return self.kind in ("markdown", "url")

    def decode(self) -> bytes:
        if self.kind != "base64":
            raise ValueError(f"Cannot decode a {self.kind} reference")
        return base64.b64decode(self.value, validate=True)


def _match_markdown(text: str) -> Optional[ImageReference]:
    m = _MARKDOWN_IMAGE_RE.search(text)
    if m and m.group(1):
        return ImageReference(kind="markdown", value=m.group(1))
    return None


def _match_bare_url(text: str) -> Optional[ImageReference]:
    m = _BARE_URL_RE.search(text)
    if m:
        return ImageReference(kind="url", value=m.group(1))
    return None


def _match_base64(text: str) -> Optional[ImageReference]:
    candidate = text.strip()
    if len(candidate) <= MIN_BASE64_CHARS or any(ch.isspace() for ch in candidate):
        return None
    ref = ImageReference(kind="base64", value=candidate)
    try:
        ref.decode()
    except (binascii.Error, ValueError):
        return None
    return ref


def find_image_reference(raw_text: Optional[str]) -> ImageReference:
    """
    Locate the generated image in a free-form reply.

    Strategies, first match wins:
      1. markdown image `![alt](target)`
      2. a bare http(s) URL
      3. the whole reply as base64 bytes (long, no spaces)

    Raises EmptyReplyError for a missing reply and UnparsableReplyError when
    no strategy matches.
    """
    if not raw_text:
        raise EmptyReplyError("Model returned no content.")

    for strategy in (_match_markdown, _match_bare_url, _match_base64):
        ref = strategy(raw_text)
        if ref is not None:
            return ref

    raise UnparsableReplyError(raw_text)
