"""Per-clip geometry resolution and video chain construction.

For every visual clip the chain is, in order:
crop -> trim -> color adjust -> scale -> rotate/flip, and the result is
placed with its top-left corner at the clip's transform position.

Degenerate input never raises: crops floor at 1px, scaled sizes at 2px, and
odd sizes are evened out (crop downward, scale upward).
"""

import math
from dataclasses import dataclass

from timeline_render.render import filter_ops
from timeline_render.render.filter_ops import FilterOp, LabelAllocator
from timeline_render.render.source_info import SourceInfo
from timeline_render.schemas.timeline import Clip, Crop


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values, like an editor's Math.round."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class PixelCrop:
    """Crop rectangle in source pixels."""

    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class ClipGeometry:
    """Resolved geometry and timing of one visual clip."""

    crop: PixelCrop
    scaled_width: int
    scaled_height: int
    footprint_width: int
    footprint_height: int
    x: int
    y: int
    start: float
    end: float

    def visible_at(self, t: float) -> bool:
        return self.start <= t < self.end

    def overlaps_canvas(self, width: int, height: int) -> bool:
        """Whether any part of the placed, rotated layer lands on the canvas."""
        return (
            self.x < width
            and self.y < height
            and self.x + self.footprint_width > 0
            and self.y + self.footprint_height > 0
        )


def _crop_axis(offset_pct: float, size_pct: float, source: int) -> tuple[int, int]:
    offset = round_half_up(offset_pct * source / 100)
    size = round_half_up(size_pct * source / 100)
    if offset + size > source:
        size = source - offset
    size = max(size, 1)
    if size > 1 and size % 2:
        size -= 1
    if source >= size:
        offset = max(0, min(offset, source - size))
    return offset, size


def resolve_crop(crop: Crop, source_width: int, source_height: int) -> PixelCrop:
    """Convert a percentage crop into an even pixel rectangle inside the source."""
    x, width = _crop_axis(crop.x, crop.w, source_width)
    y, height = _crop_axis(crop.y, crop.h, source_height)
    return PixelCrop(x=x, y=y, width=width, height=height)


def _even_up(value: int) -> int:
    if value % 2:
        value += 1
    return max(value, 2)


def resolve_scaled_size(width: int, height: int, scale: float) -> tuple[int, int]:
    """Apply the clip's own scale factor; no implicit fit to the canvas."""
    return (
        _even_up(round_half_up(width * scale)),
        _even_up(round_half_up(height * scale)),
    )


def placement_footprint(width: int, height: int, rotate: int) -> tuple[int, int]:
    """Bounding box after rotation. Flips never change it."""
    if rotate in (90, 270):
        return height, width
    return width, height


def resolve_clip_geometry(clip: Clip, info: SourceInfo) -> ClipGeometry:
    pixel_crop = resolve_crop(clip.crop, info.width, info.height)
    scaled_w, scaled_h = resolve_scaled_size(
        pixel_crop.width, pixel_crop.height, clip.transform.scale
    )
    footprint_w, footprint_h = placement_footprint(scaled_w, scaled_h, clip.rotate)
    return ClipGeometry(
        crop=pixel_crop,
        scaled_width=scaled_w,
        scaled_height=scaled_h,
        footprint_width=footprint_w,
        footprint_height=footprint_h,
        x=round_half_up(clip.transform.x),
        y=round_half_up(clip.transform.y),
        start=clip.timeline_offset,
        end=clip.timeline_end,
    )


def build_clip_chain(
    clip: Clip,
    info: SourceInfo,
    geometry: ClipGeometry,
    source: str,
    labels: LabelAllocator,
) -> list[FilterOp]:
    """
    Build the video ops that turn a source stream into a placeable layer.

    Args:
        clip: The clip being compiled
        info: Resolved source info for the clip's source
        geometry: Output of ``resolve_clip_geometry``
        source: Label of the engine input's video stream
        labels: Label allocator of the current compile

    Returns:
        Ops in application order; the last op's output is the layer label
    """
    ops: list[FilterOp] = []
    current = source

    def _push(op: FilterOp) -> None:
        nonlocal current
        ops.append(op)
        current = op.output

    pc = geometry.crop
    _push(filter_ops.crop(current, labels.next("crop"), pc.x, pc.y, pc.width, pc.height))

    _push(
        filter_ops.trim(
            current,
            labels.next("trim"),
            start=clip.source_in,
            duration=clip.source_duration,
            offset=clip.timeline_offset,
            loop=info.is_image or clip.kind == "image",
        )
    )

    color = clip.color_filters
    if not color.is_neutral:
        _push(
            filter_ops.color_adjust(
                current,
                labels.next("color"),
                contrast=color.contrast / 100,
                saturation=color.saturation / 100,
                gamma=color.gamma,
                luminance_ratio=color.brightness / 100,
            )
        )

    _push(
        filter_ops.scale(
            current, labels.next("scale"), geometry.scaled_width, geometry.scaled_height
        )
    )

    if clip.rotate or clip.flip_h or clip.flip_v:
        _push(
            filter_ops.rotate_flip(
                current, labels.next("rot"), clip.rotate, clip.flip_h, clip.flip_v
            )
        )

    return ops
