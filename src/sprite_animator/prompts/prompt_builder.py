from __future__ import annotations

from typing import List

SUBJECT = "Fictional, generic chibi game character."
VISUAL_STYLE = "2D digital game art, flat color, high contrast."

CONSTRAINTS = [
    "**View**: Full body, Frontal, Orthographic view.",
    "**Background**: Pure White (#FFFFFF).",
    "**Framing**: Character must be fully visible within the frame, no cropping.",
    "**Consistency**: Maintain exact character proportions and design details from the reference image.",
    "**Content**: NO text, NO grid lines, NO numbers, NO extra objects. One character only.",
]


def build_frame_prompt(action: str, frame_index: int, total_frames: int) -> str:
    """
    Build the instruction for one animation frame.

    `frame_index` is 0-based; the text shows it 1-based. Output is a pure
    function of the arguments.
    """
    if total_frames <= 0:
        raise ValueError(f"total_frames must be positive, got {total_frames}")
    if not 0 <= frame_index < total_frames:
        raise ValueError(f"frame_index {frame_index} out of range for {total_frames} frames")

    lines: List[str] = []
    lines.append(f"Generate frame {frame_index + 1} of {total_frames} for an animation sequence.")
    lines.append("")
    lines.append(f"Subject: {SUBJECT}")
    lines.append(f"Visual Style: {VISUAL_STYLE}")
    lines.append(f"Action: {action.strip()}")
    lines.append("")
    lines.append("CRITICAL CONSTRAINTS:")
    for i, constraint in enumerate(CONSTRAINTS, start=1):
        lines.append(f"{i}. {constraint}")
    lines.append("")
    lines.append("Output: A single high-quality image.")

    return "\n".join(lines)
