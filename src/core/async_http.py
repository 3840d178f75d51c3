"""Async HTTP utilities using httpx with retry and exponential backoff."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional

import httpx

from config import settings

logger = logging.getLogger(__name__)


class AsyncHttpError(RuntimeError):
    pass


def build_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    headers = {"User-Agent": settings.DEFAULT_USER_AGENT}
    return httpx.AsyncClient(
        headers=headers,
        timeout=settings.DEFAULT_TIMEOUT,
        transport=transport,
        follow_redirects=True,
    )


async def request(
    url: str,
    *,
    method: str = "GET",
    params: Optional[Mapping[str, Any]] = None,
    data: Optional[Mapping[str, Any]] = None,
    client: Optional[httpx.AsyncClient] = None,
    retries: int | None = None,
    backoff: float | None = None,
) -> httpx.Response:
    """Issue one request, retrying transport errors and non-2xx responses.

    ``retries`` counts additional attempts after the first one. Raises
    :class:`AsyncHttpError` once they are exhausted.
    """
    retries = retries if retries is not None else settings.DEFAULT_RETRIES
    backoff = backoff if backoff is not None else settings.DEFAULT_BACKOFF_FACTOR
    close_client = False
    if client is None:
        client = build_client()
        close_client = True
    try:
        attempt = 0
        while True:
            attempt += 1
            try:
                resp = await client.request(method, url, params=params, data=data)
                resp.raise_for_status()
                return resp
            except (httpx.TimeoutException, httpx.HTTPError) as e:
                if attempt > retries:
                    raise AsyncHttpError(f"{method} {url} failed after {attempt} attempt(s): {e}") from e
                sleep_for = backoff * (2 ** (attempt - 1))
                logger.warning(
                    "Attempt %d/%d failed for %s: %s. Retrying in %.1fs",
                    attempt,
                    retries + 1,
                    url,
                    e,
                    sleep_for,
                )
                await asyncio.sleep(sleep_for)
    finally:
        if close_client:
            await client.aclose()
