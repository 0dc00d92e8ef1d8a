"""Typed filter graph instructions.

The compiler produces an ordered list of ``FilterOp`` values drawn from a
closed set of kinds. Nothing upstream of ``serialize_filter_graph`` knows
FFmpeg's textual ``filter_complex`` syntax, so the structure of a compiled
graph can be inspected and tested without an FFmpeg binary.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable


class FilterKind(str, Enum):
    """Filter operation kinds, in the order a clip chain applies them."""

    COLOR_SOURCE = "color_source"
    CROP = "crop"
    TRIM = "trim"
    COLOR_ADJUST = "color_adjust"
    SCALE = "scale"
    ROTATE_FLIP = "rotate_flip"
    OVERLAY = "overlay"
    AUDIO_TRIM = "audio_trim"
    AUDIO_MIX = "audio_mix"


@dataclass(frozen=True)
class FilterOp:
    """One node of the filter graph."""

    kind: FilterKind
    inputs: tuple[str, ...]
    outputs: tuple[str, ...]
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def output(self) -> str:
        return self.outputs[0]


class LabelAllocator:
    """Hands out unique stream labels for one compile."""

    def __init__(self) -> None:
        self._counts: dict[str, int] = {}

    def next(self, prefix: str) -> str:
        n = self._counts.get(prefix, 0)
        self._counts[prefix] = n + 1
        return f"{prefix}{n}"


def stream_ref(input_index: int, stream: str) -> str:
    """Label for a stream of an engine input, e.g. ``0:v``."""
    return f"{input_index}:{stream}"


# ============================================================================
# Constructors
# ============================================================================


def color_source(
    output: str, width: int, height: int, duration: float, fps: int, color: str = "black"
) -> FilterOp:
    return FilterOp(
        FilterKind.COLOR_SOURCE,
        (),
        (output,),
        {"color": color, "width": width, "height": height, "duration": duration, "fps": fps},
    )


def crop(source: str, output: str, x: int, y: int, width: int, height: int) -> FilterOp:
    return FilterOp(
        FilterKind.CROP, (source,), (output,), {"x": x, "y": y, "width": width, "height": height}
    )


def trim(
    source: str, output: str, start: float, duration: float, offset: float, loop: bool = False
) -> FilterOp:
    """Select ``[start, start+duration)`` and re-time it to begin at ``offset``.

    ``loop`` turns a single-frame image into an endless stream first.
    """
    return FilterOp(
        FilterKind.TRIM,
        (source,),
        (output,),
        {"start": start, "duration": duration, "offset": offset, "loop": loop},
    )


def color_adjust(
    source: str,
    output: str,
    contrast: float,
    saturation: float,
    gamma: float,
    luminance_ratio: float,
) -> FilterOp:
    # The eq brightness term stays at 0; brightness is the multiplicative ratio
    return FilterOp(
        FilterKind.COLOR_ADJUST,
        (source,),
        (output,),
        {
            "brightness": 0.0,
            "contrast": contrast,
            "saturation": saturation,
            "gamma": gamma,
            "luminance_ratio": luminance_ratio,
        },
    )


def scale(source: str, output: str, width: int, height: int) -> FilterOp:
    return FilterOp(FilterKind.SCALE, (source,), (output,), {"width": width, "height": height})


def rotate_flip(source: str, output: str, rotate: int, flip_h: bool, flip_v: bool) -> FilterOp:
    return FilterOp(
        FilterKind.ROTATE_FLIP,
        (source,),
        (output,),
        {"rotate": rotate, "flip_h": flip_h, "flip_v": flip_v},
    )


def overlay(base: str, top: str, output: str, x: int, y: int, start: float, end: float) -> FilterOp:
    """Paint ``top`` over ``base`` at ``(x, y)`` while ``start <= t < end``."""
    return FilterOp(
        FilterKind.OVERLAY, (base, top), (output,), {"x": x, "y": y, "start": start, "end": end}
    )


def audio_trim(
    source: str, output: str, start: float, duration: float, delay: float, gain: float
) -> FilterOp:
    return FilterOp(
        FilterKind.AUDIO_TRIM,
        (source,),
        (output,),
        {"start": start, "duration": duration, "delay": delay, "gain": gain},
    )


def audio_mix(sources: list[str], output: str) -> FilterOp:
    return FilterOp(
        FilterKind.AUDIO_MIX,
        tuple(sources),
        (output,),
        {"inputs": len(sources), "normalize": False},
    )


def is_visible(op: FilterOp, t: float) -> bool:
    """Whether an overlay op shows its top stream at time ``t``."""
    if op.kind is not FilterKind.OVERLAY:
        raise ValueError(f"Not an overlay op: {op.kind.value}")
    return op.params["start"] <= t < op.params["end"]


# ============================================================================
# FFmpeg serialization
# ============================================================================


def _num(value: float) -> str:
    return f"{value:.6f}"


def _color_source(p: dict[str, Any]) -> str:
    return f"color=c={p['color']}:s={p['width']}x{p['height']}:r={p['fps']}:d={_num(p['duration'])}"


def _crop(p: dict[str, Any]) -> str:
    return f"crop={p['width']}:{p['height']}:{p['x']}:{p['y']}"


def _trim(p: dict[str, Any]) -> str:
    parts = []
    if p["loop"]:
        parts.append("loop=loop=-1:size=1:start=0")
    parts.append(f"trim=start={_num(p['start'])}:duration={_num(p['duration'])}")
    parts.append(f"setpts=PTS-STARTPTS+{_num(p['offset'])}/TB")
    return ",".join(parts)


def _color_adjust(p: dict[str, Any]) -> str:
    text = (
        f"eq=brightness={p['brightness']}:contrast={p['contrast']}"
        f":saturation={p['saturation']}:gamma={p['gamma']}"
    )
    ratio = p["luminance_ratio"]
    if ratio != 1.0:
        text += f",colorchannelmixer=rr={ratio}:gg={ratio}:bb={ratio}"
    return text


def _scale(p: dict[str, Any]) -> str:
    return f"scale={p['width']}:{p['height']}"


def _rotate_flip(p: dict[str, Any]) -> str:
    parts = {
        0: [],
        90: ["transpose=clock"],
        180: ["hflip", "vflip"],
        270: ["transpose=cclock"],
    }[p["rotate"]]
    if p["flip_h"]:
        parts.append("hflip")
    if p["flip_v"]:
        parts.append("vflip")
    # A flip-free 0 degree op never gets built, but keep the graph valid anyway
    return ",".join(parts) or "null"


def _overlay(p: dict[str, Any]) -> str:
    enable = f"gte(t,{_num(p['start'])})*lt(t,{_num(p['end'])})"
    return f"overlay=x={p['x']}:y={p['y']}:eof_action=pass:enable='{enable}'"


def _audio_trim(p: dict[str, Any]) -> str:
    delay_ms = int(round(p["delay"] * 1000))
    return (
        f"atrim=start={_num(p['start'])}:duration={_num(p['duration'])},"
        f"asetpts=PTS-STARTPTS,adelay={delay_ms}:all=1,volume={p['gain']}"
    )


def _audio_mix(p: dict[str, Any]) -> str:
    normalize = 1 if p["normalize"] else 0
    return f"amix=inputs={p['inputs']}:duration=longest:normalize={normalize}"


_SERIALIZERS: dict[FilterKind, Callable[[dict[str, Any]], str]] = {
    FilterKind.COLOR_SOURCE: _color_source,
    FilterKind.CROP: _crop,
    FilterKind.TRIM: _trim,
    FilterKind.COLOR_ADJUST: _color_adjust,
    FilterKind.SCALE: _scale,
    FilterKind.ROTATE_FLIP: _rotate_flip,
    FilterKind.OVERLAY: _overlay,
    FilterKind.AUDIO_TRIM: _audio_trim,
    FilterKind.AUDIO_MIX: _audio_mix,
}


def serialize_op(op: FilterOp) -> str:
    """Render one op as a ``filter_complex`` chain."""
    inputs = "".join(f"[{label}]" for label in op.inputs)
    outputs = "".join(f"[{label}]" for label in op.outputs)
    return f"{inputs}{_SERIALIZERS[op.kind](op.params)}{outputs}"


def serialize_filter_graph(ops: list[FilterOp]) -> str:
    """Render the full op list as an FFmpeg ``filter_complex`` string."""
    return ";\n".join(serialize_op(op) for op in ops)
