"""Transports that carry framed requests to the DCS."""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from driving_permit_cri.exceptions import VerificationTransportError
from driving_permit_cri.models import RawResponse, TransportMetadata

logger = logging.getLogger(__name__)


class VerificationTransport(Protocol):
    async def submit(self, payload: str, metadata: TransportMetadata) -> RawResponse: ...


class HttpxVerificationTransport:
    """POSTs framed payloads with an ``httpx.AsyncClient``.

    Redirects are never followed so that 3xx responses reach the interpreter.
    """

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client or httpx.AsyncClient(follow_redirects=False)
        self._owns_client = client is None

    async def submit(self, payload: str, metadata: TransportMetadata) -> RawResponse:
        try:
            response = await self._client.post(
                metadata.endpoint,
                content=payload.encode("utf-8"),
                headers=dict(metadata.headers),
                timeout=metadata.timeout,
                follow_redirects=False,
            )
        except httpx.TransportError as exc:
            logger.warning("DCS transport error (%s): %s", type(exc).__name__, exc)
            msg = f"{type(exc).__name__}: {exc}"
            raise VerificationTransportError(msg) from exc

        return RawResponse(
            status_code=response.status_code,
            body=response.text,
            headers=dict(response.headers),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpxVerificationTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


__all__ = ["HttpxVerificationTransport", "VerificationTransport"]
