"""HTTP mail API client with retry on transient failures."""

from __future__ import annotations

import asyncio
import logging

import httpx

from arbiter.config import settings

logger = logging.getLogger(__name__)

_MAX_RETRIES = 3
_RETRY_STATUSES = {429, 500, 502, 503, 504}
_BASE_BACKOFF_SECONDS = 1.0


class EmailClient:
    """Sends one email per call through the configured mail API.

    With no ``mail_api_url`` configured the message is logged instead, which
    is the default for development and tests.
    """

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self.base_url = settings.mail_api_url
        self._client = client

    @property
    def is_console(self) -> bool:
        return not self.base_url

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=settings.mail_timeout_seconds,
                headers={
                    "Authorization": f"Bearer {settings.mail_api_token}",
                    "Cache-Control": "no-cache",
                },
            )
        return self._client

    async def send(self, email: str, subject: str, message: str) -> None:
        if self.is_console:
            logger.info("[email][console] to=%s subject=%s", email, subject)
            return

        payload = {
            "sender": settings.mail_no_reply,
            "name": settings.mail_sender,
            "recipient": email,
            "subject": subject,
            "message": message,
        }
        client = await self._get_client()

        for attempt in range(_MAX_RETRIES + 1):
            try:
                response = await client.post("/sendmail/", json=payload)
                if response.status_code < 400:
                    logger.info("Email sent to %s (%s)", email, subject)
                    return
                if response.status_code not in _RETRY_STATUSES or attempt >= _MAX_RETRIES:
                    response.raise_for_status()
                delay = _BASE_BACKOFF_SECONDS * (2 ** attempt)
                logger.warning(
                    "Mail API returned %d for %s, retrying in %.1fs (attempt %d/%d)",
                    response.status_code, email, delay, attempt + 1, _MAX_RETRIES,
                )
                await asyncio.sleep(delay)
            except httpx.RequestError as exc:
                if attempt >= _MAX_RETRIES:
                    raise
                delay = _BASE_BACKOFF_SECONDS * (2 ** attempt)
                logger.warning(
                    "Mail API request error for %s: %s, retrying in %.1fs", email, exc, delay,
                )
                await asyncio.sleep(delay)

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
