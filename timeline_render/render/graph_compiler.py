"""Timeline to filter graph compilation.

``compile_timeline`` is a pure function of the timeline and the source info
cache: no probing, no I/O, no module state. The resulting ``CompiledGraph``
holds everything the render engine needs apart from the output path.

Op order in the graph:
1. base canvas (``COLOR_SOURCE``)
2. per-clip video chains (crop, trim, color, scale, rotate/flip)
3. the overlay fold, ending at the video output label
4. audio segments and their mix, ending at the audio output label
"""

import logging
from dataclasses import dataclass

from timeline_render.exceptions import EmptyTimelineError
from timeline_render.render.audio_mixer import AudioMixer, AudioSegment, resolve_audio_segment
from timeline_render.render.canvas import (
    DEFAULT_CANVAS_HEIGHT,
    DEFAULT_CANVAS_WIDTH,
    resolve_canvas_size,
)
from timeline_render.render.filter_ops import (
    FilterOp,
    LabelAllocator,
    serialize_filter_graph,
    stream_ref,
)
from timeline_render.render.geometry import build_clip_chain, resolve_clip_geometry
from timeline_render.render.layer_compositor import Layer, LayerCompositor
from timeline_render.render.source_info import UNKNOWN_SOURCE, SourceInfo, SourceInfoCache
from timeline_render.schemas.timeline import Clip, Timeline, Track

logger = logging.getLogger(__name__)

MIN_CLIP_DURATION_S = 0.05


@dataclass(frozen=True)
class OutputLabels:
    video: str
    audio: str | None = None

    def as_list(self) -> list[str]:
        return [self.video] if self.audio is None else [self.video, self.audio]


@dataclass(frozen=True)
class CompiledGraph:
    """Compiled filter graph plus the facts the engine needs to run it."""

    ops: list[FilterOp]
    inputs: list[str]  # Engine input paths; position is the input index
    output_labels: OutputLabels
    width: int
    height: int
    duration: float

    @property
    def filter_complex(self) -> str:
        return serialize_filter_graph(self.ops)


def select_clips(timeline: Timeline, min_duration: float = MIN_CLIP_DURATION_S) -> list[tuple[Track, Clip]]:
    """Clips longer than ``min_duration``; shorter ones are edit noise."""
    selected = []
    for track, clip in timeline.iter_clips():
        if clip.source_duration <= min_duration:
            logger.info(
                f"[COMPILE] Dropping clip {clip.id}: duration {clip.source_duration}s "
                f"<= {min_duration}s"
            )
            continue
        selected.append((track, clip))
    return selected


def composition_duration(clips: list[Clip]) -> float:
    return max((clip.timeline_end for clip in clips), default=0.0)


def _is_visual(track: Track, clip: Clip, info: SourceInfo) -> bool:
    if track.kind != "video" or clip.kind == "audio":
        return False
    # A probed audio-only file has no video stream to composite
    return not (info.has_audio and info.width == 0 and info.height == 0)


def compile_timeline(
    timeline: Timeline,
    sources: SourceInfoCache,
    fps: int = 30,
    min_clip_duration: float = MIN_CLIP_DURATION_S,
    default_width: int = DEFAULT_CANVAS_WIDTH,
    default_height: int = DEFAULT_CANVAS_HEIGHT,
) -> CompiledGraph:
    """
    Compile a timeline into an ordered filter graph.

    Args:
        timeline: The composition to compile
        sources: Source info per source path, resolved beforehand
        fps: Frame rate of the base canvas
        min_clip_duration: Clips at or below this length are dropped

    Returns:
        CompiledGraph

    Raises:
        EmptyTimelineError: If no clip survives the duration filter
    """
    selected = select_clips(timeline, min_clip_duration)
    if not selected:
        raise EmptyTimelineError(
            f"No clip longer than {min_clip_duration}s in timeline"
        )

    inputs: list[str] = []
    input_index: dict[str, int] = {}
    for _, clip in selected:
        if clip.source_path not in input_index:
            input_index[clip.source_path] = len(inputs)
            inputs.append(clip.source_path)

    visual = [
        (track, clip)
        for track, clip in selected
        if _is_visual(track, clip, sources.get(clip.source_path, UNKNOWN_SOURCE))
    ]

    width, height = resolve_canvas_size(
        timeline.canvas,
        (clip for _, clip in visual),
        sources,
        default_width=default_width,
        default_height=default_height,
    )
    duration = composition_duration([clip for _, clip in selected])

    labels = LabelAllocator()
    compositor = LayerCompositor(labels, width, height, fps)

    base_op = compositor.base(duration)
    ops: list[FilterOp] = [base_op]

    layers: list[Layer] = []
    for _, clip in visual:
        info = sources.get(clip.source_path, UNKNOWN_SOURCE)
        geometry = resolve_clip_geometry(clip, info)
        if not geometry.overlaps_canvas(width, height):
            logger.warning(
                f"[COMPILE] Clip {clip.id} at ({geometry.x}, {geometry.y}) "
                f"{geometry.footprint_width}x{geometry.footprint_height} is outside "
                f"the {width}x{height} canvas"
            )
        chain = build_clip_chain(
            clip, info, geometry, stream_ref(input_index[clip.source_path], "v"), labels
        )
        ops.extend(chain)
        layers.append(Layer(clip_id=clip.id, label=chain[-1].output, geometry=geometry))

    overlay_ops, video_label = compositor.composite(base_op.output, layers)
    ops.extend(overlay_ops)

    segments: list[AudioSegment] = []
    for _, clip in selected:
        info = sources.get(clip.source_path, UNKNOWN_SOURCE)
        segment = resolve_audio_segment(
            clip, info, stream_ref(input_index[clip.source_path], "a")
        )
        if segment is not None:
            segments.append(segment)

    audio_ops, audio_label = AudioMixer(labels).build(segments)
    ops.extend(audio_ops)

    logger.info(
        f"[COMPILE] {len(selected)} clips ({len(layers)} visual, {len(segments)} audio), "
        f"{len(inputs)} inputs, canvas {width}x{height}, duration {duration:.3f}s, "
        f"{len(ops)} ops"
    )

    return CompiledGraph(
        ops=ops,
        inputs=inputs,
        output_labels=OutputLabels(video=video_label, audio=audio_label),
        width=width,
        height=height,
        duration=duration,
    )
