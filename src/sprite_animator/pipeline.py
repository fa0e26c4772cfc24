from __future__ import annotations

import asyncio
import logging
import threading
from typing import List, Optional

from .config import Settings
from .errors import CancellationError
from .frames import FrameRequest, generate_single_frame
from .llm.client_base import ImageChatClient
from .resources import FrameResult, ResourceStore

logger = logging.getLogger(__name__)

# Requests per group; kept small to stay under the provider's rate limits.
BATCH_SIZE = 3
# Start of request k in a group is delayed by k * STAGGER_SECONDS.
STAGGER_SECONDS = 0.1


class CancellationToken:
    """
    Abort flag shared by everything in one run.

    Goes from active to aborted once. Safe to set from another thread
    (a UI, a signal handler) while the event loop runs.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def aborted(self) -> bool:
        return self._event.is_set()


def _check_cancelled(token: Optional[CancellationToken]) -> None:
    if token is not None and token.aborted:
        raise CancellationError()


def _release_all(results: List[FrameResult]) -> None:
    for r in results:
        r.release()


async def _run_group(
    client: ImageChatClient,
    requests: List[FrameRequest],
    store: ResourceStore,
) -> List[FrameResult]:
    tasks: List[asyncio.Task] = []
    try:
        for position, req in enumerate(requests):
            if position:
                await asyncio.sleep(STAGGER_SECONDS * position)
            tasks.append(asyncio.ensure_future(generate_single_frame(client, req, store)))
        # gather keeps argument order, so results line up with frame indices
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for t in tasks:
            if not t.done():
                t.cancel()
            elif not t.cancelled() and t.exception() is None:
                t.result().release()
        raise


async def generate_frames(
    image: bytes,
    mime_type: str,
    prompt: str,
    count: int,
    cancellation_token: Optional[CancellationToken] = None,
    *,
    client: Optional[ImageChatClient] = None,
    settings: Optional[Settings] = None,
    store: Optional[ResourceStore] = None,
) -> List[FrameResult]:
    """
    Generate `count` animation frames from one reference image.

    Frames are requested BATCH_SIZE at a time. The token is checked before
    and after every group; once it is set the run raises CancellationError
    and returns nothing. Any frame failure aborts the whole run.
    """
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")

    if client is None:
        from .llm.openai_client import OpenAIImageClient

        settings = settings or Settings.from_env()
        client = OpenAIImageClient(settings=settings)
    if store is None:
        store = ResourceStore(fetch_timeout=(settings or Settings()).fetch_timeout)

    results: List[FrameResult] = []
    try:
        for start in range(0, count, BATCH_SIZE):
            _check_cancelled(cancellation_token)

            group = [
                FrameRequest(
                    reference_image=image,
                    mime_type=mime_type,
                    action_prompt=prompt,
                    frame_index=j,
                    total_frames=count,
                )
                for j in range(start, min(start + BATCH_SIZE, count))
            ]
            logger.info("Generating frames %d-%d of %d", start + 1, start + len(group), count)
            batch_results = await _run_group(client, group, store)

            if cancellation_token is not None and cancellation_token.aborted:
                _release_all(batch_results)
                raise CancellationError()

            results.extend(batch_results)
    except BaseException:
        _release_all(results)
        raise

    return results


def generate_frames_sync(
    image: bytes,
    mime_type: str,
    prompt: str,
    count: int,
    cancellation_token: Optional[CancellationToken] = None,
    **kwargs,
) -> List[FrameResult]:
    """Blocking wrapper around generate_frames for scripts."""
    return asyncio.run(
        generate_frames(image, mime_type, prompt, count, cancellation_token, **kwargs)
    )
