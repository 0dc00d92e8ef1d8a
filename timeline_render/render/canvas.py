"""Output canvas size resolution."""

import logging
from typing import Iterable

from timeline_render.render.geometry import round_half_up
from timeline_render.render.source_info import UNKNOWN_SOURCE, SourceInfoCache
from timeline_render.schemas.timeline import Canvas, Clip

logger = logging.getLogger(__name__)

DEFAULT_CANVAS_WIDTH = 1920
DEFAULT_CANVAS_HEIGHT = 1080


def even_down(value: int) -> int:
    """Largest even number <= value, never below 2."""
    return max(2, value - value % 2)


def cropped_source_size(clip: Clip, sources: SourceInfoCache) -> tuple[int, int]:
    """Pixel size of a clip's source after its percentage crop."""
    info = sources.get(clip.source_path, UNKNOWN_SOURCE)
    return (
        round_half_up(info.width * clip.crop.w / 100),
        round_half_up(info.height * clip.crop.h / 100),
    )


def resolve_canvas_size(
    canvas: Canvas,
    clips: Iterable[Clip],
    sources: SourceInfoCache,
    default_width: int = DEFAULT_CANVAS_WIDTH,
    default_height: int = DEFAULT_CANVAS_HEIGHT,
) -> tuple[int, int]:
    """
    Resolve the output frame size.

    An explicit canvas wins. Otherwise the widest and the tallest cropped
    clip are taken independently, so the result need not match any single
    clip. Falls back to the default size when no clip has a known size.

    Returns:
        (width, height), both even and >= 2
    """
    if canvas.is_explicit:
        width, height = canvas.width, canvas.height
    else:
        width = height = 0
        for clip in clips:
            w, h = cropped_source_size(clip, sources)
            width = max(width, w)
            height = max(height, h)
        if width <= 0 or height <= 0:
            logger.info(
                f"[CANVAS] No clip with a known size, using {default_width}x{default_height}"
            )
            width, height = default_width, default_height

    return even_down(width), even_down(height)
