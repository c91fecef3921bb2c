"""
Remote scoreboard fetcher

Issues a single GET against the upstream scoreboard feed and returns the
decoded JSON payload. Failures are raised as FetchError subclasses; retry
and fallback policy belongs to the cache.
"""

import asyncio
import aiohttp
import json
import logging
import time
from typing import Dict, Any, Optional

from .config import FeedConfig

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Base class for upstream fetch failures"""


class FetchTimeout(FetchError):
    """The request did not complete within the configured timeout"""

    def __init__(self, message: str = "Request timed out"):
        super().__init__(message)


class TransportFailure(FetchError):
    """DNS, connection, or HTTP-level failure"""


class ParseFailure(FetchError):
    """The response body was not valid JSON"""

    def __init__(self, message: str = "Failed to parse scoreboard response"):
        super().__init__(message)


class ScoreboardFetcher:
    """Fetches the raw scoreboard payload over HTTPS"""

    def __init__(self, config: FeedConfig):
        self.config = config
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> 'ScoreboardFetcher':
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            self.session = aiohttp.ClientSession(
                timeout=timeout,
                headers={
                    'User-Agent': self.config.user_agent,
                    'Accept': 'application/json'
                }
            )
        return self.session

    async def fetch(self) -> Dict[str, Any]:
        """Fetch and decode the scoreboard feed"""
        start_time = time.time()
        session = self._get_session()

        try:
            async with session.get(self.config.url) as response:
                if response.status >= 400:
                    raise TransportFailure(f"HTTP {response.status}")
                body = await response.read()
        except asyncio.TimeoutError:
            raise FetchTimeout()
        except aiohttp.ClientError as e:
            raise TransportFailure(str(e) or type(e).__name__) from e

        try:
            data = json.loads(body)
        except ValueError as e:
            raise ParseFailure() from e

        duration_ms = int((time.time() - start_time) * 1000)
        logger.debug(f"Fetched {self.config.url} in {duration_ms}ms")
        return data

    async def close(self):
        """Close the underlying HTTP session"""
        if self.session:
            await self.session.close()
            self.session = None
