"""HTTP utilities for card rendering.

Downloads avatar and badge images with a size cap and converts them into
``data:`` URIs so the rendered SVG is self-contained. Image URLs come from
profile and badge events and are therefore untrusted:

- only ``http`` and ``https`` URLs on public hosts are fetched, and
  hostnames are resolved through [PublicResolver][nostrcard.utils.http.PublicResolver];
- redirects are not followed;
- only ``image/*`` bodies are inlined, read with a hard size limit.

Any failure degrades to [PLACEHOLDER_IMAGE][nostrcard.utils.svg.PLACEHOLDER_IMAGE].

Note:
    This module sits in the ``utils`` layer and depends only on models,
    ``aiohttp`` and ``rfc3986``.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import socket
from typing import TYPE_CHECKING, Any

import aiohttp
from aiohttp.abc import AbstractResolver
from aiohttp.resolver import DefaultResolver
from rfc3986 import uri_reference

from nostrcard.models.relay import is_public_host

from .svg import PLACEHOLDER_IMAGE, CardImages


if TYPE_CHECKING:
    from collections.abc import Sequence

    from nostrcard.models import ProfileRecord, ResolvedBadge


logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "image/png"
_FETCHABLE_SCHEMES = ("http", "https")
_HTTP_OK = 200


class PublicResolver(AbstractResolver):
    """DNS resolver that only returns public addresses.

    Wraps aiohttp's default resolver and drops every address that
    [is_public_host()][nostrcard.models.relay.is_public_host] rejects, so a
    public-looking hostname cannot point a fetch at a private network. IP
    literal hosts never reach a resolver;
    [fetch_data_uri()][nostrcard.utils.http.fetch_data_uri] checks those
    before connecting.
    """

    def __init__(self, resolver: AbstractResolver | None = None) -> None:
        self._resolver = resolver if resolver is not None else DefaultResolver()

    async def resolve(
        self, host: str, port: int = 0, family: socket.AddressFamily = socket.AF_INET
    ) -> list[Any]:
        addresses = await self._resolver.resolve(host, port, family)
        public = [address for address in addresses if is_public_host(address["host"])]
        if not public:
            raise OSError(f"{host} does not resolve to a public address")
        return public

    async def close(self) -> None:
        await self._resolver.close()


def public_image_url(url: str | None) -> str | None:
    """Return *url* normalized when it is an http(s) URL on a public host, else ``None``.

    URLs carrying credentials or a percent-encoded host are refused.
    """
    if not url:
        return None
    uri = uri_reference(url.strip()).normalize()
    if uri.scheme not in _FETCHABLE_SCHEMES or not uri.host or uri.userinfo:
        return None
    if "%" in uri.host:
        return None
    if not is_public_host(uri.host):
        return None
    return uri.unsplit()


async def _read_bounded(response: aiohttp.ClientResponse, max_size: int) -> bytes:
    """Read an entire response body, raising ``ValueError`` past *max_size* bytes."""
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await response.content.read(max_size + 1 - total)
        if not chunk:
            break
        total += len(chunk)
        if total > max_size:
            raise ValueError(f"Response body too large: >{max_size} bytes")
        chunks.append(chunk)
    return b"".join(chunks)


async def fetch_data_uri(
    session: aiohttp.ClientSession,
    url: str | None,
    *,
    max_size: int,
    timeout: float,  # noqa: ASYNC109
) -> str:
    """Download *url* and return it as a base64 ``data:`` URI.

    Args:
        session: Shared aiohttp session, normally built on
            [PublicResolver][nostrcard.utils.http.PublicResolver].
        url: Image URL; ``None`` or empty yields the placeholder.
        max_size: Maximum body size in bytes.
        timeout: Total request timeout in seconds.

    Returns:
        ``data:<content-type>;base64,<body>``, or the placeholder image when
        the URL is missing, not http(s), on a non-public host, unreachable,
        redirected, not successful, not an image, or too large.
    """
    target = public_image_url(url)
    if target is None:
        if url:
            logger.debug("image_url_rejected url=%s", url)
        return PLACEHOLDER_IMAGE

    try:
        async with session.get(
            target,
            timeout=aiohttp.ClientTimeout(total=timeout),
            allow_redirects=False,
        ) as response:
            response.raise_for_status()
            if response.status != _HTTP_OK:
                raise ValueError(f"Unexpected status {response.status}")
            content_type = response.headers.get("Content-Type", DEFAULT_CONTENT_TYPE)
            content_type = content_type.split(";", 1)[0].strip().lower() or DEFAULT_CONTENT_TYPE
            if not content_type.startswith("image/"):
                raise ValueError(f"Not an image: {content_type}")
            body = await _read_bounded(response, max_size)
    except (aiohttp.ClientError, TimeoutError, ValueError) as e:
        logger.debug("image_fetch_failed url=%s error=%s", url, e)
        return PLACEHOLDER_IMAGE

    return f"data:{content_type};base64,{base64.b64encode(body).decode('ascii')}"


async def load_card_images(
    profile: ProfileRecord,
    badges: Sequence[ResolvedBadge],
    *,
    max_size: int,
    timeout: float,  # noqa: ASYNC109
) -> CardImages:
    """Fetch the avatar and every badge image concurrently.

    Returns:
        [CardImages][nostrcard.utils.svg.CardImages] with one reference per
        image; failed downloads are replaced by the placeholder.
    """
    connector = aiohttp.TCPConnector(resolver=PublicResolver())
    async with aiohttp.ClientSession(connector=connector) as session:
        avatar, *badge_images = await asyncio.gather(
            fetch_data_uri(session, profile.picture, max_size=max_size, timeout=timeout),
            *(
                fetch_data_uri(session, badge.display_image, max_size=max_size, timeout=timeout)
                for badge in badges
            ),
        )
    return CardImages(avatar=avatar, badges=tuple(badge_images))
