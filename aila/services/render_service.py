"""Markdown to sanitized HTML for model replies."""

from dataclasses import dataclass

import markdown
import nh3
import structlog

logger = structlog.get_logger()

CONTENT_REMOVED_NOTICE = "<p>Content removed by sanitizer.</p>"

MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "sane_lists"]


@dataclass(frozen=True)
class SanitizedHtml:
    """Sanitizer output; ``content_removed`` means non-empty input came back empty."""

    html: str
    content_removed: bool = False


def render_markdown(text: str) -> str:
    """Convert Markdown to (unsanitized) HTML."""
    return markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS)


def sanitize_html(html: str) -> SanitizedHtml:
    """Strip scripts, event handlers and other executable content."""
    clean = nh3.clean(html)
    if not clean.strip() and html.strip():
        logger.warning("Sanitizer removed all content", original=html[:200])
        return SanitizedHtml(html="", content_removed=True)
    return SanitizedHtml(html=clean)


def render_reply(text: str) -> SanitizedHtml:
    """Markdown, then sanitize; a fully stripped reply becomes a visible notice."""
    result = sanitize_html(render_markdown(text))
    if result.content_removed:
        return SanitizedHtml(html=CONTENT_REMOVED_NOTICE, content_removed=True)
    return result
