"""Markdown rendering schemas."""

from pydantic import BaseModel, Field


class RenderRequest(BaseModel):
    """Markdown text to convert to safe HTML."""

    markdown: str = Field(..., max_length=200_000)


class RenderResponse(BaseModel):
    """Sanitized HTML; ``content_removed`` flags a fully stripped input."""

    html: str
    content_removed: bool = False
