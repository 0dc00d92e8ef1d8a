from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from timeline_render.render.pipeline import RenderPipeline


@lru_cache
def get_render_pipeline() -> RenderPipeline:
    # One shared pipeline so renders to the same destination share its lock
    return RenderPipeline()


Pipeline = Annotated[RenderPipeline, Depends(get_render_pipeline)]
