"""Board post bodies are Markdown; API responses carry a sanitized HTML copy.

The rendered HTML is derived on every read and never stored.
"""
from __future__ import annotations

import bleach
import markdown
from bleach.callbacks import nofollow

_MARKDOWN_EXTENSIONS = [
    "markdown.extensions.extra",
    "markdown.extensions.sane_lists",
]

# What the Markdown extensions above can emit, minus images and raw headings
# that would outrank the assignment title.
POST_BODY_TAGS = frozenset(
    {
        "a", "abbr", "b", "blockquote", "br", "code", "dd", "dl", "dt", "em",
        "h3", "h4", "hr", "i", "li", "ol", "p", "pre", "strong", "ul",
        "table", "thead", "tbody", "tr", "th", "td",
    }
)
POST_BODY_ATTRS = {
    "a": ["href", "title"],
    "abbr": ["title"],
    "th": ["align"],
    "td": ["align"],
}
POST_BODY_PROTOCOLS = frozenset({"http", "https", "mailto"})


def sanitize_post_html(html: str) -> str:
    cleaned = bleach.clean(
        html,
        tags=POST_BODY_TAGS,
        attributes=POST_BODY_ATTRS,
        protocols=POST_BODY_PROTOCOLS,
        strip=True,
    )
    # Bare URLs become links; every link is rel="nofollow".
    return bleach.linkify(cleaned, callbacks=[nofollow], parse_email=False)


def render_post_body(content: str | None) -> str:
    """Render board post Markdown to HTML that is safe to embed."""
    if not content:
        return ""
    html = markdown.markdown(content, extensions=_MARKDOWN_EXTENSIONS, output_format="html")
    return sanitize_post_html(html)
