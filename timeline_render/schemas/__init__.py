from timeline_render.schemas.render import RenderRequest, RenderResult
from timeline_render.schemas.timeline import (
    Canvas,
    Clip,
    ColorFilters,
    Crop,
    Timeline,
    Track,
    Transform,
)

__all__ = [
    "Canvas",
    "Clip",
    "ColorFilters",
    "Crop",
    "Timeline",
    "Track",
    "Transform",
    "RenderRequest",
    "RenderResult",
]
