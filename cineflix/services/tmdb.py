"""
TMDB (The Movie Database) client.
Read-only access to trending, popular, search and details endpoints,
with retry + exponential backoff on transport errors, 429 and 5xx.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class TMDBError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TMDBClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.themoviedb.org/3",
        timeout: float = 10.0,
        max_retries: int = 3,
        backoff_sec: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.max_retries = max(1, max_retries)
        self.backoff_sec = backoff_sec
        self._client = httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    async def trending(self, page: int = 1) -> Dict[str, Any]:
        return await self._get("/trending/movie/week", {"page": page})

    async def popular(self, page: int = 1) -> Dict[str, Any]:
        return await self._get("/movie/popular", {"page": page})

    async def search(self, query: str, page: int = 1) -> Dict[str, Any]:
        return await self._get("/search/movie", {"query": query, "page": page})

    async def details(self, movie_id: int) -> Dict[str, Any]:
        return await self._get(f"/movie/{movie_id}", {})

    async def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key:
            raise TMDBError("TMDB_API_KEY not configured")

        query = {"api_key": self.api_key, **params}
        last_error: Optional[TMDBError] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                resp = await self._client.get(path, params=query)
            except httpx.HTTPError as e:
                last_error = TMDBError(f"TMDB request failed: {e.__class__.__name__}")
            else:
                if resp.status_code < 400:
                    try:
                        return resp.json()
                    except ValueError:
                        raise TMDBError(f"TMDB returned a non-JSON body for {path}")
                last_error = TMDBError(
                    f"TMDB responded {resp.status_code} for {path}", status_code=resp.status_code
                )
                if resp.status_code not in RETRYABLE_STATUS:
                    raise last_error

            if attempt < self.max_retries:
                delay = self.backoff_sec * (2 ** (attempt - 1))
                logger.warning(
                    "TMDB %s attempt %d/%d failed (%s), retrying in %.2fs",
                    path, attempt, self.max_retries, last_error, delay,
                )
                await asyncio.sleep(delay)

        logger.error("TMDB %s failed after %d attempts: %s", path, self.max_retries, last_error)
        raise last_error
