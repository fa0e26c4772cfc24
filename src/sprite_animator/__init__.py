"""
Sprite Animator - generate animation frames of a character with a multimodal chat model.
"""

__version__ = "0.1.0"

from .credentials import has_valid_credential, request_credential_setup
from .pipeline import CancellationToken, generate_frames, generate_frames_sync

__all__ = [
    "CancellationToken",
    "generate_frames",
    "generate_frames_sync",
    "has_valid_credential",
    "request_credential_setup",
    "__version__",
]
