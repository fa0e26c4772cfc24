from __future__ import annotations

import base64
import binascii
import logging
import mimetypes
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import unquote_to_bytes

import httpx

from .errors import ResourceFetchError
from .parsing.reply_parser import BASE64_MIME_TYPE, ImageReference

logger = logging.getLogger(__name__)

_DATA_URL_RE = re.compile(r"^data:([^;,]*)((?:;[^;,]*)*),(.*)$", re.DOTALL)


def decode_data_url(url: str) -> tuple:
    """Split a `data:` URL into (bytes, mime type). Raises ResourceFetchError."""
    m = _DATA_URL_RE.match(url.strip())
    if not m:
        raise ResourceFetchError(url, "malformed data URL")
    mime_type = m.group(1).strip() or None
    params = [p.strip().lower() for p in m.group(2).split(";") if p.strip()]
    body = m.group(3)
    if "base64" not in params:
        return unquote_to_bytes(body), mime_type
    try:
        return base64.b64decode("".join(body.split()), validate=True), mime_type
    except (binascii.Error, ValueError) as exc:
        raise ResourceFetchError(url, "invalid base64 payload") from exc


@dataclass
class FrameResult:
    """
    Displayable image data for one frame.

    Either materialized (bytes written to `path`) or, when fetching the
    generated URL failed, just the remote `url`. Whoever holds the result
    calls `release()` once done with a materialized file.
    """
    frame_index: int
    path: Optional[Path] = None
    url: Optional[str] = None
    mime_type: Optional[str] = None

    @property
    def is_materialized(self) -> bool:
        return self.path is not None

    @property
    def location(self) -> str:
        if self.path is not None:
            return str(self.path)
        return self.url or ""

    def read_bytes(self) -> bytes:
        if self.path is None:
            raise ValueError(f"Frame {self.frame_index} was not materialized (url={self.url})")
        return self.path.read_bytes()

    def release(self) -> None:
        if self.path is None:
            return
        self.path.unlink(missing_ok=True)
        self.path = None


class ResourceStore:
    """
    Writes fetched or decoded image bytes to local files.

    Files go to `directory`, or to a fresh temporary directory.
    """

    def __init__(self, directory: Optional[str] = None, *, fetch_timeout: float = 30.0):
        if directory is None:
            directory = tempfile.mkdtemp(prefix="sprite_animator_")
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.fetch_timeout = fetch_timeout

    def materialize(self, frame_index: int, data: bytes, mime_type: Optional[str]) -> FrameResult:
        ext = mimetypes.guess_extension(mime_type) if mime_type else None
        path = self.directory / f"frame_{frame_index:02d}{ext or '.png'}"
        path.write_bytes(data)
        logger.debug("Materialized frame %d -> %s (%d bytes)", frame_index + 1, path, len(data))
        return FrameResult(frame_index=frame_index, path=path, mime_type=mime_type)

    async def fetch(self, url: str) -> tuple:
        """Download `url`; returns (bytes, content type). Raises ResourceFetchError."""
        try:
            async with httpx.AsyncClient(timeout=self.fetch_timeout, follow_redirects=True) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ResourceFetchError(url, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise ResourceFetchError(url, str(exc) or type(exc).__name__) from exc

        content_type = response.headers.get("content-type", "")
        mime_type = content_type.split(";")[0].strip() or None
        return response.content, mime_type

    async def resolve(self, frame_index: int, ref: ImageReference) -> FrameResult:
        """
        Turn a parsed reference into a FrameResult.

        URL references are fetched and materialized; a failed fetch falls
        back to the raw URL. Base64 references and `data:` URLs are decoded
        directly without a request.
        """
        if ref.kind == "base64":
            return self.materialize(frame_index, ref.decode(), BASE64_MIME_TYPE)

        try:
            if ref.value.startswith("data:"):
                data, mime_type = decode_data_url(ref.value)
            else:
                data, mime_type = await self.fetch(ref.value)
        except ResourceFetchError as exc:
            logger.warning("%s; returning original URL", exc)
            return FrameResult(frame_index=frame_index, url=ref.value)

        if mime_type is None or not mime_type.startswith("image/"):
            mime_type = mimetypes.guess_type(ref.value)[0] or mime_type
        return self.materialize(frame_index, data, mime_type)
