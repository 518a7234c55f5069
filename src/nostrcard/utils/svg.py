"""
Profile card SVG renderer.

[render_card()][nostrcard.utils.svg.render_card] is a pure function from a
resolved profile, its badges and already fetched image references to a
650x200 SVG document. Image download lives in
[nostrcard.utils.http][nostrcard.utils.http] so rendering stays free of I/O.

Layout:

```text
+---------------------------------------------------------------+
|  (avatar)   Display Name              [b1][b2][b3][b4][b5]    |
|             username                                          |
|             about line 1                                      |
|             about line 2                                      |
|             about line 3                                      |
+---------------------------------------------------------------+
```

Badges are right-aligned, 48px square, 2px apart.
"""

from __future__ import annotations

from html import escape
from typing import TYPE_CHECKING, NamedTuple


if TYPE_CHECKING:
    from collections.abc import Sequence

    from nostrcard.models import ProfileRecord, ResolvedBadge


CARD_WIDTH = 650
CARD_HEIGHT = 200
ABOUT_MAX_CHARS = 150
ABOUT_MAX_LINES = 3
BADGE_SIZE = 48
BADGE_GAP = 2
BADGE_SLOTS = 5
BADGE_TOP = 40
CARD_PADDING = 20
BADGE_ROW_X = CARD_WIDTH - CARD_PADDING - (BADGE_SLOTS * BADGE_SIZE + (BADGE_SLOTS - 1) * BADGE_GAP)

PLACEHOLDER_IMAGE = (
    "data:image/svg+xml;base64,PHN2ZyB3aWR0aD0iMTIwIiBoZWlnaHQ9IjEyMCIgeG1sbnM9Imh0"
    "dHA6Ly93d3cudzMub3JnLzIwMDAvc3ZnIj48cmVjdCB3aWR0aD0iMTIwIiBoZWlnaHQ9IjEyMCIgZmls"
    "bD0iI2UxZTRlOCIvPjwvc3ZnPg=="
)

_FONT = "-apple-system, BlinkMacSystemFont, 'Segoe UI', Helvetica, Arial, sans-serif"

_STYLE = f"""
      .card {{ fill: #ffffff; stroke: #e1e4e8; stroke-width: 1; }}
      .avatar-border {{ fill: #ffffff; stroke: #e1e4e8; stroke-width: 2; }}
      .display-name {{ font-family: {_FONT}; font-size: 26px; font-weight: 600; fill: #24292e; }}
      .username {{ font-family: {_FONT}; font-size: 20px; font-weight: 300; fill: #586069; }}
      .bio {{ font-family: {_FONT}; font-size: 16px; fill: #24292e; }}"""


class CardImages(NamedTuple):
    """Image references for one card, each a URL or a ``data:`` URI.

    Attributes:
        avatar: Avatar image reference.
        badges: One reference per badge, in badge order.
    """

    avatar: str
    badges: tuple[str, ...] = ()


def truncate(text: str, max_chars: int) -> str:
    """Cut *text* to *max_chars* characters, appending ``...`` when cut."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."


def display_name(profile: ProfileRecord) -> str:
    """The headline name: ``display_name``, else ``name``, else ``Anonymous``."""
    return profile.display_name or profile.name or "Anonymous"


def about_lines(profile: ProfileRecord) -> list[str]:
    """The biography as at most three lines of a 150-character excerpt."""
    if not profile.about:
        return []
    return truncate(profile.about, ABOUT_MAX_CHARS).split("\n")[:ABOUT_MAX_LINES]


def _attr(value: str) -> str:
    return escape(value, quote=True)


def render_card(
    profile: ProfileRecord,
    identifier: str,
    badges: Sequence[ResolvedBadge],
    images: CardImages | None = None,
) -> str:
    """Render the profile card.

    Args:
        profile: The resolved profile.
        identifier: The identifier the card was requested for; embedded as
            the document title.
        badges: Resolved badges in display order; only the first five are
            drawn.
        images: Pre-fetched image references. When omitted the avatar and
            badge URLs are linked directly, with the placeholder standing in
            for missing ones.

    Returns:
        The SVG document as a string. All profile and badge text is escaped.
    """
    badges = list(badges)[:BADGE_SLOTS]
    if images is None:
        images = CardImages(
            avatar=profile.picture or PLACEHOLDER_IMAGE,
            badges=tuple(badge.display_image or PLACEHOLDER_IMAGE for badge in badges),
        )

    name = profile.name or ""
    lines = about_lines(profile)

    parts = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<svg width="{CARD_WIDTH}" height="{CARD_HEIGHT}" '
        'xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink">',
        f"  <title>{escape(identifier)}</title>",
        "  <defs>",
        f"    <style>{_STYLE}\n    </style>",
        '    <clipPath id="avatar-clip">',
        '      <circle cx="80" cy="100" r="58"/>',
        "    </clipPath>",
        "  </defs>",
        f'  <rect class="card" x="0" y="0" width="{CARD_WIDTH}" height="{CARD_HEIGHT}" rx="10"/>',
        '  <circle class="avatar-border" cx="80" cy="100" r="60"/>',
        f'  <image href="{_attr(images.avatar)}" x="20" y="40" width="120" height="120" '
        'clip-path="url(#avatar-clip)" preserveAspectRatio="xMidYMid slice"/>',
        f'  <text class="display-name" x="160" y="65">{escape(display_name(profile))}</text>',
    ]

    if name:
        parts.append(f'  <text class="username" x="160" y="95">{escape(name)}</text>')

    if lines:
        parts.append(f'  <text class="bio" x="160" y="{135 if name else 115}">')
        parts.extend(
            f'    <tspan x="160" dy="{0 if i == 0 else 20}">{escape(line)}</tspan>'
            for i, line in enumerate(lines)
        )
        parts.append("  </text>")

    if badges:
        parts.append('  <g id="badges">')
        for index, badge in enumerate(badges):
            href = images.badges[index] if index < len(images.badges) else PLACEHOLDER_IMAGE
            x = BADGE_ROW_X + index * (BADGE_SIZE + BADGE_GAP)
            title = f"<title>{escape(badge.name)}</title>" if badge.name else ""
            parts.append(
                f'    <image href="{_attr(href)}" x="{x}" y="{BADGE_TOP}" '
                f'width="{BADGE_SIZE}" height="{BADGE_SIZE}" '
                f'preserveAspectRatio="xMidYMid slice">{title}</image>'
            )
        parts.append("  </g>")

    parts.append("</svg>")
    return "\n".join(parts)
