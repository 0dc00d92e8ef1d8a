from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel


class EditorModel(BaseModel):
    """Accepts both snake_case and the editor's camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Clip geometry
# =============================================================================


class Crop(EditorModel):
    """Crop rectangle in percent of the source frame."""

    x: float = 0
    y: float = 0
    w: float = 100
    h: float = 100

    @field_validator("x", "y", "w", "h")
    @classmethod
    def _within_percent(cls, v: float) -> float:
        return min(max(float(v), 0.0), 100.0)

    @model_validator(mode="after")
    def _non_degenerate(self) -> "Crop":
        # Keep the rectangle inside [0, 100] and at least 1% on each axis
        self.w = max(self.w, 1.0)
        self.h = max(self.h, 1.0)
        self.x = min(self.x, 100.0 - self.w)
        self.y = min(self.y, 100.0 - self.h)
        return self


class Transform(EditorModel):
    x: float = 0
    y: float = 0
    scale: float = Field(default=1.0, ge=0)


# Ranges accepted by ffmpeg eq (contrast, saturation, gamma) and colorchannelmixer (brightness)
COLOR_FILTER_LIMITS: dict[str, tuple[float, float]] = {
    "brightness": (0.0, 200.0),
    "contrast": (0.0, 1000.0),
    "saturation": (0.0, 300.0),
    "gamma": (0.1, 10.0),
}


class ColorFilters(EditorModel):
    """Color adjustment. Percentages except gamma (a plain factor).

    Out-of-range values are clamped rather than rejected.
    """

    brightness: float = 100
    contrast: float = 100
    saturation: float = 100
    gamma: float = 1.0

    @field_validator("brightness", "contrast", "saturation", "gamma")
    @classmethod
    def _within_filter_range(cls, v: float, info: ValidationInfo) -> float:
        low, high = COLOR_FILTER_LIMITS[info.field_name]
        return min(max(float(v), low), high)

    @property
    def is_neutral(self) -> bool:
        return (
            self.brightness == 100
            and self.contrast == 100
            and self.saturation == 100
            and self.gamma == 1.0
        )


# =============================================================================
# Timeline
# =============================================================================

ClipKind = Literal["video", "image", "audio"]
TrackKind = Literal["video", "audio"]
Rotation = Literal[0, 90, 180, 270]


class Clip(EditorModel):
    id: str
    source_path: str
    kind: ClipKind = "video"
    source_in: float = Field(default=0, ge=0)
    source_duration: float = 0
    timeline_offset: float = Field(default=0, ge=0)
    crop: Crop = Field(default_factory=Crop)
    transform: Transform = Field(default_factory=Transform)
    rotate: Rotation = 0
    flip_h: bool = False
    flip_v: bool = False
    color_filters: ColorFilters = Field(default_factory=ColorFilters)
    volume: float = Field(default=100, ge=0)

    @property
    def timeline_end(self) -> float:
        return self.timeline_offset + self.source_duration


class Track(EditorModel):
    id: str
    kind: TrackKind = "video"
    clips: list[Clip] = Field(default_factory=list)


class Canvas(EditorModel):
    """Requested output size. Zero on either axis means derive from clips."""

    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)

    @property
    def is_explicit(self) -> bool:
        return self.width > 0 and self.height > 0


class Timeline(EditorModel):
    canvas: Canvas = Field(default_factory=Canvas)
    tracks: list[Track] = Field(default_factory=list)

    def iter_clips(self):
        """Yield (track, clip) pairs in track-then-clip declaration order."""
        for track in self.tracks:
            for clip in track.clips:
                yield track, clip

    def source_paths(self) -> list[str]:
        """Distinct source paths in first-reference order."""
        seen: dict[str, None] = {}
        for _, clip in self.iter_clips():
            seen.setdefault(clip.source_path, None)
        return list(seen)
