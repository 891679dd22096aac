"""Service layer – forwarding uploads to the external inference service."""

from __future__ import annotations

import logging

import httpx

from src.weldscan.config import settings

logger = logging.getLogger(__name__)


async def forward_to_upstream(
    body: bytes,
    content_type: str | None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.Response:
    """POST *body* unchanged to ``settings.upstream_url``.

    The ``Content-Type`` header is passed through so the multipart boundary
    survives the hop. No retries are attempted.
    """
    headers = {"Content-Type": content_type} if content_type else {}
    logger.debug("Forwarding %d bytes to %s", len(body), settings.upstream_url)
    async with httpx.AsyncClient(
        timeout=settings.upstream_timeout,
        transport=transport,
        follow_redirects=True,
    ) as client:
        return await client.post(settings.upstream_url, content=body, headers=headers)
