"""
Audio mixing for compiled timelines.

This module handles:
- One trimmed, delayed, gain-scaled segment per audio-bearing clip
- Additive mixing of every segment into a single output stream

The mix never normalizes: overlapping segments get louder rather than being
ducked, matching what the editor plays back.
"""

from dataclasses import dataclass

from timeline_render.render import filter_ops
from timeline_render.render.filter_ops import FilterOp, LabelAllocator
from timeline_render.render.source_info import SourceInfo
from timeline_render.schemas.timeline import Clip


@dataclass(frozen=True)
class AudioSegment:
    """Audio segment for mixing."""

    source: str  # Label of the engine input's audio stream
    start: float  # Trim start in the source (s)
    duration: float  # Trim length (s)
    delay: float  # Position on the timeline (s)
    gain: float  # Linear gain, 1.0 = unity

    @property
    def end(self) -> float:
        return self.delay + self.duration


def resolve_audio_segment(clip: Clip, info: SourceInfo, source: str) -> AudioSegment | None:
    """Audio segment for a clip, or None when its source carries no audio."""
    if not info.has_audio:
        return None
    return AudioSegment(
        source=source,
        start=clip.source_in,
        duration=clip.source_duration,
        delay=clip.timeline_offset,
        gain=clip.volume / 100,
    )


class AudioMixer:
    """
    Builds the audio half of a filter graph.

    Supports:
    - Per-segment trim, delay and volume
    - Non-normalizing summation of all segments
    """

    def __init__(self, labels: LabelAllocator):
        self.labels = labels

    def build(self, segments: list[AudioSegment]) -> tuple[list[FilterOp], str | None]:
        """
        Build the segment ops and the final mix.

        Args:
            segments: Segments in track-then-clip order

        Returns:
            (ops, mixed output label); the label is None without segments
        """
        if not segments:
            return [], None

        ops: list[FilterOp] = []
        segment_outputs: list[str] = []
        for segment in segments:
            op = filter_ops.audio_trim(
                segment.source,
                self.labels.next("aseg"),
                start=segment.start,
                duration=segment.duration,
                delay=segment.delay,
                gain=segment.gain,
            )
            ops.append(op)
            segment_outputs.append(op.output)

        mix = filter_ops.audio_mix(segment_outputs, self.labels.next("aout"))
        ops.append(mix)
        return ops, mix.output
