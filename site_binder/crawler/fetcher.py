"""
Fetcher module: HTTP GETs with retry/backoff and per-request timeout.
"""
from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Optional, Sequence

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_binder.config import BinderConfig
from site_binder.logger import logger

RETRY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)


@dataclass(slots=True)
class FetchedResource:
    """Body and headers of one successful response."""

    url: str
    final_url: str
    status: int
    content_type: str
    body: bytes
    charset: Optional[str] = None

    @property
    def is_html(self) -> bool:
        return "html" in self.content_type

    def text(self) -> str:
        return self.body.decode(self.charset or "utf-8", errors="replace")


class Fetcher:
    """Handles HTTP fetching with retries/backoff and timeout."""

    def __init__(
        self,
        session: ClientSession,
        config: BinderConfig,
        retry_status: Sequence[int] = RETRY_STATUS,
    ) -> None:
        self.session = session
        self.config = config
        self._retry_status = retry_status

    async def fetch(self, url: str, timeout: Optional[float] = None) -> FetchedResource:
        """
        GET *url*, retrying 5xx/429 responses and connection errors.

        Raises the last :class:`aiohttp.ClientError` (or ``asyncio.TimeoutError``)
        once ``retry_times`` is exhausted; 4xx responses raise immediately.
        """
        client_timeout = ClientTimeout(total=timeout or self.config.timeout)
        attempts = 0
        while True:
            try:
                async with self.session.get(url, timeout=client_timeout, allow_redirects=True) as resp:
                    if resp.status in self._retry_status:
                        raise ClientError(f"Retryable status {resp.status}")
                    resp.raise_for_status()
                    body = await resp.read()
                    return FetchedResource(
                        url=url,
                        final_url=str(resp.url),
                        status=resp.status,
                        content_type=resp.headers.get("Content-Type", "").split(";", 1)[0].strip().lower(),
                        body=body,
                        charset=resp.charset,
                    )
            except asyncio.TimeoutError:
                # no retry on timeout
                logger.warning("Timeout fetching %s", url)
                raise
            except ClientError as exc:
                status = getattr(exc, "status", None)
                if status is not None and status not in self._retry_status:
                    raise
                attempts += 1
                if attempts > self.config.retry_times:
                    logger.warning("Failed %s: %s", url, exc)
                    raise
                # exponential backoff, cap at 60s
                backoff = min(60, 2**attempts * 0.1 + random.random() * 0.1)
                logger.debug("Retry %d/%d for %s after %.2f s", attempts, self.config.retry_times, url, backoff)
                await asyncio.sleep(backoff)
