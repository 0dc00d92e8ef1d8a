from pydantic import BaseModel, Field

from timeline_render.schemas.timeline import EditorModel, Timeline


class RenderRequest(EditorModel):
    timeline: Timeline
    destination_path: str  # Relative to the gallery root
    new_name: str | None = None  # Optional file name replacing the destination's


class RenderResult(BaseModel):
    success: bool
    path: str | None = None  # Root-relative POSIX path of the written file
    error: str | None = None
    error_code: str | None = None
    warnings: list[str] = Field(default_factory=list)
