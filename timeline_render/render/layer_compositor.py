"""Multi-layer video compositing on a running canvas accumulator.

Stacking order (bottom to top):
- the black base canvas
- clips of the first declared track, in clip order
- clips of each later track, in clip order

A later-declared track therefore paints over an earlier one wherever their
visible intervals overlap. This is the editor's "last track on top" rule.
"""

from dataclasses import dataclass

from timeline_render.render import filter_ops
from timeline_render.render.filter_ops import FilterOp, LabelAllocator
from timeline_render.render.geometry import ClipGeometry


@dataclass(frozen=True)
class Layer:
    """A processed clip ready to be overlaid."""

    clip_id: str
    label: str
    geometry: ClipGeometry


class LayerCompositor:
    """Folds layers onto a base canvas with time-gated overlays."""

    def __init__(self, labels: LabelAllocator, width: int, height: int, fps: int):
        self.labels = labels
        self.width = width
        self.height = height
        self.fps = fps

    def base(self, duration: float) -> FilterOp:
        """Solid black canvas spanning the whole composition."""
        return filter_ops.color_source(
            self.labels.next("base"), self.width, self.height, duration, self.fps
        )

    def composite(self, base_label: str, layers: list[Layer]) -> tuple[list[FilterOp], str]:
        """
        Overlay layers left to right onto the base.

        Args:
            base_label: Output label of the base canvas op
            layers: Layers in stacking order (bottom first)

        Returns:
            (overlay ops, final video label)
        """
        ops: list[FilterOp] = []
        current = base_label
        for layer in layers:
            geo = layer.geometry
            op = filter_ops.overlay(
                current,
                layer.label,
                self.labels.next("comp"),
                x=geo.x,
                y=geo.y,
                start=geo.start,
                end=geo.end,
            )
            ops.append(op)
            current = op.output
        return ops, current
