"""Open-Graph preview card (SVG) and the share landing page (HTML).

Only text that came out of the signed share store is rendered, and all of
it goes through ``escape_markup`` before interpolation.
"""

import html
from urllib.parse import quote

from minnebo.security.sanitize import escape_markup

CARD_WIDTH = 1200
CARD_HEIGHT = 630
QUESTION_PREVIEW_CHARS = 60
ANSWER_PREVIEW_CHARS = 100

DEFAULT_TITLE = "MINNEBO - AI Wisdom & Ancient Insights"
DEFAULT_DESCRIPTION = (
    "Transform your questions into profound wisdom. Experience AI-powered "
    "insights inspired by ancient sages, mystics, and philosophers."
)


def _truncate(text: str, limit: int) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def render_og_svg(question: str = "", answer: str = "") -> str:
    """Render the 1200x630 preview card for a shared conversation."""
    # Stored text is entity-encoded; cut on characters, not inside entities
    question, answer = html.unescape(question), html.unescape(answer)
    question_text = escape_markup(_truncate(question, QUESTION_PREVIEW_CHARS)) if question else ""
    answer_text = escape_markup(_truncate(answer, ANSWER_PREVIEW_CHARS)) if answer else ""

    if question_text:
        body = (
            f'<text x="600" y="330" font-family="Georgia, serif" font-size="40" '
            f'text-anchor="middle" fill="#ffffff">&#8220;{question_text}&#8221;</text>\n'
            f'    <text x="600" y="420" font-family="Georgia, serif" font-size="28" '
            f'font-style="italic" text-anchor="middle" fill="#e0d7ff">{answer_text}</text>'
        )
    else:
        body = (
            '<text x="600" y="360" font-family="Georgia, serif" font-size="40" '
            'text-anchor="middle" fill="#ffffff">Ancient wisdom meets modern AI</text>'
        )

    return f"""<svg width="{CARD_WIDTH}" height="{CARD_HEIGHT}" xmlns="http://www.w3.org/2000/svg">
  <defs>
    <linearGradient id="mainBg" x1="0%" y1="0%" x2="100%" y2="100%">
      <stop offset="0%" style="stop-color:#03BFF3;stop-opacity:1" />
      <stop offset="50%" style="stop-color:#4609A8;stop-opacity:0.8" />
      <stop offset="100%" style="stop-color:#310080;stop-opacity:1" />
    </linearGradient>
  </defs>
  <rect width="{CARD_WIDTH}" height="{CARD_HEIGHT}" fill="url(#mainBg)" />
  <rect x="450" y="80" width="300" height="120" rx="20" fill="white" fill-opacity="0.9" />
  <text x="600" y="150" font-family="Arial, sans-serif" font-size="36" font-weight="bold" text-anchor="middle" fill="#310080">MINNEBO</text>
  <g>
    {body}
  </g>
</svg>
"""


def render_share_page(
    base_url: str,
    share_id: str | None = None,
    question: str = "",
    answer: str = "",
) -> str:
    """Landing page carrying OG/Twitter meta tags that forwards to the app.

    ``share_id`` must already be validated by the caller.
    """
    question, answer = html.unescape(question), html.unescape(answer)
    base_url = base_url.rstrip("/")
    target = f"{base_url}/?share={quote(share_id)}" if share_id else f"{base_url}/"
    image_query = f"?id={quote(share_id)}" if share_id else ""
    image_url = f"{base_url}/api/og-image{image_query}"

    title = f"{question} - minnebo.ai" if question else "MINNEBO"
    og_title = f'"{question}"' if question else DEFAULT_TITLE
    if answer:
        description = _truncate(answer, 160) + " | Discover profound wisdom through AI-powered ancient teachings."
    else:
        description = DEFAULT_DESCRIPTION
    alt = f"MINNEBO AI Wisdom - {question[:50] if question else 'Ancient wisdom meets modern AI'}"

    e = escape_markup
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>{e(title)}</title>
  <meta property="og:title" content="{e(og_title)}" />
  <meta property="og:description" content="{e(description)}" />
  <meta property="og:url" content="{e(target)}" />
  <meta property="og:type" content="article" />
  <meta property="og:site_name" content="MINNEBO" />
  <meta property="og:image" content="{e(image_url)}" />
  <meta property="og:image:type" content="image/svg+xml" />
  <meta property="og:image:width" content="{CARD_WIDTH}" />
  <meta property="og:image:height" content="{CARD_HEIGHT}" />
  <meta property="og:image:alt" content="{e(alt)}" />
  <meta name="twitter:card" content="summary_large_image" />
  <meta name="twitter:title" content="{e(og_title)}" />
  <meta name="twitter:description" content="{e(_truncate(answer, 140) if answer else DEFAULT_DESCRIPTION)}" />
  <meta name="twitter:image" content="{e(image_url)}" />
  <meta http-equiv="refresh" content="0; url={e(target)}" />
</head>
<body>
  <p>Loading wisdom... <a href="{e(target)}">Continue to minnebo.ai</a></p>
</body>
</html>
"""
