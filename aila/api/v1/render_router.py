"""Render API router: Markdown to sanitized HTML."""

from fastapi import APIRouter

from aila.schemas.render_schema import RenderRequest, RenderResponse
from aila.schemas.response_schema import ERROR_RESPONSES, ApiResponse, success_response
from aila.services.render_service import render_reply

router = APIRouter(
    prefix="/api/v1/render",
    tags=["render"],
    responses=ERROR_RESPONSES,
)


@router.post("", response_model=ApiResponse[RenderResponse])
async def render(request: RenderRequest) -> dict:
    """Render a model reply for display."""
    result = render_reply(request.markdown)
    return success_response(
        RenderResponse(html=result.html, content_removed=result.content_removed)
    )
