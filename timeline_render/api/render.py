"""Render API endpoint - synchronous rendering of a posted timeline."""

import logging

from fastapi import APIRouter, Response

from timeline_render.api.deps import Pipeline
from timeline_render.constants.error_codes import get_error_spec
from timeline_render.schemas.render import RenderRequest, RenderResult

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/render", response_model=RenderResult)
async def render_timeline(
    render_request: RenderRequest,
    pipeline: Pipeline,
    response: Response,
) -> RenderResult:
    """
    Render a timeline to a file under the gallery root.

    Returns when the file is in place (or the render has failed).
    """
    result = await pipeline.render(render_request)
    if not result.success:
        spec = get_error_spec(result.error_code or "INTERNAL_ERROR")
        response.status_code = spec.get("http_status", 500)
        logger.info(f"[API] Render of {render_request.destination_path} failed: {result.error_code}")
    return result
