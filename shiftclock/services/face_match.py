"""
Face-match capability client.

The comparison itself runs in an external service. Any failure there counts
as "no match": an unreachable matcher must never let someone clock in as
somebody else.
"""

from __future__ import annotations

import base64
import logging
from typing import Protocol

import httpx

from shiftclock.core.config import settings

logger = logging.getLogger(__name__)


class FaceMatcher(Protocol):
    async def match(self, live_image: bytes, reference: str) -> bool: ...


class HttpFaceMatcher:
    """Posts the live capture and the reference photo URL to ``FACE_MATCH_URL``.

    The service answers ``{"match": true|false}``.
    """

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url or settings.FACE_MATCH_URL
        self._timeout = timeout if timeout is not None else settings.FACE_MATCH_TIMEOUT_SECONDS
        self._transport = transport

    async def match(self, live_image: bytes, reference: str) -> bool:
        payload = {
            "live_image": base64.b64encode(live_image).decode("ascii"),
            "reference": reference,
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(self._url, json=payload)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Face match call failed for reference %s: %s", reference, exc)
            return False

        matched = data.get("match") if isinstance(data, dict) else None
        if not isinstance(matched, bool):
            logger.error("Face match service returned an unexpected body: %r", data)
            return False
        return matched
