"""Loopback HTTP front door serving the cached leaderboard.

Routes:
  GET  /             - current leaderboard snapshot
  GET  /leaderboard  - current leaderboard snapshot
  GET  /health       - liveness check with process uptime
  OPTIONS *          - CORS preflight

Every response carries permissive CORS headers so a page opened from the
local filesystem can call the proxy.
"""

import logging
import time
from typing import Optional

from aiohttp import web

from .cache import LeaderboardCache

logger = logging.getLogger(__name__)


CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'GET, OPTIONS',
    'Access-Control-Allow-Headers': 'Content-Type',
}


def _not_found() -> web.Response:
    return web.json_response({'error': 'Not found'}, status=404)


@web.middleware
async def cors_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Answer preflights, map routing misses to JSON 404s, add CORS headers."""
    if request.method == 'OPTIONS':
        response = web.Response(status=204)
    else:
        try:
            response = await handler(request)
        except (web.HTTPNotFound, web.HTTPMethodNotAllowed):
            response = _not_found()

    response.headers.update(CORS_HEADERS)
    return response


class LeaderboardHTTPServer:
    """Lightweight async HTTP server in front of the leaderboard cache."""

    def __init__(self, cache: LeaderboardCache, host: str = "127.0.0.1", port: int = 3747):
        self.cache = cache
        self.host = host
        self.port = port
        self.started_at = time.monotonic()
        self._app: Optional[web.Application] = None
        self._runner: Optional[web.AppRunner] = None

    def build_app(self) -> web.Application:
        app = web.Application(middlewares=[cors_middleware])
        app.router.add_get("/", self._handle_leaderboard)
        app.router.add_get("/leaderboard", self._handle_leaderboard)
        app.router.add_get("/health", self._handle_health)
        return app

    async def start(self) -> None:
        """Bind and start serving. Raises OSError if the port is taken."""
        self._app = self.build_app()
        self._runner = web.AppRunner(self._app, access_log=None)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        try:
            await site.start()
        except OSError:
            await self._runner.cleanup()
            self._runner = None
            raise
        logger.info(f"HTTP server listening on {self.host}:{self.port}")

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            logger.info("HTTP server stopped")

    def uptime(self) -> float:
        return time.monotonic() - self.started_at

    # -- Routes --

    async def _handle_leaderboard(self, request: web.Request) -> web.Response:
        try:
            snapshot = await self.cache.get_leaderboard()
        except Exception as e:
            logger.exception("Failed to retrieve leaderboard")
            return web.json_response({'status': 'error', 'message': str(e)}, status=500)

        return web.json_response(snapshot.to_dict())

    async def _handle_health(self, request: web.Request) -> web.Response:
        return web.json_response({'ok': True, 'uptime': self.uptime()})
