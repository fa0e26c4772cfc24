from __future__ import annotations

import base64
import logging
from dataclasses import dataclass

from .llm.client_base import ImageChatClient
from .parsing.reply_parser import find_image_reference
from .prompts.prompt_builder import build_frame_prompt
from .resources import FrameResult, ResourceStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameRequest:
    reference_image: bytes
    mime_type: str
    action_prompt: str
    frame_index: int
    total_frames: int

    def data_url(self) -> str:
        """The reference image as an inline data URL for vision input."""
        b64 = base64.b64encode(self.reference_image).decode("utf-8")
        return f"data:{self.mime_type};base64,{b64}"

    def prompt_text(self) -> str:
        return build_frame_prompt(self.action_prompt, self.frame_index, self.total_frames)


async def generate_single_frame(
    client: ImageChatClient,
    request: FrameRequest,
    store: ResourceStore,
) -> FrameResult:
    """
    Request one frame and resolve the reply into a FrameResult.

    Empty or unparsable replies raise; a URL that cannot be downloaded is
    returned as-is.
    """
    frame_no = request.frame_index + 1
    try:
        resp = await client.generate(prompt=request.prompt_text(), image_data_url=request.data_url())
        ref = find_image_reference(resp.raw_text)
        logger.debug("Frame %d: found %s reference", frame_no, ref.kind)
        return await store.resolve(request.frame_index, ref)
    except Exception:
        logger.exception("Error generating frame %d", frame_no)
        raise
