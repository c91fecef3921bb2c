#!/usr/bin/env python3
"""
Tests for the local HTTP front door

Drives LeaderboardHTTPServer's application through aiohttp's test client
with a stub cache behind it.
"""

import sys
from pathlib import Path

import pytest
from aiohttp.test_utils import TestClient, TestServer

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from leaderboard_proxy.parser import LeaderboardSnapshot, PlayerEntry
from leaderboard_proxy.server import CORS_HEADERS, LeaderboardHTTPServer


class StubCache:

    def __init__(self, snapshot=None, error=None):
        self.snapshot = snapshot
        self.error = error
        self.calls = 0

    async def get_leaderboard(self):
        self.calls += 1
        if self.error:
            raise self.error
        return self.snapshot


def ok_snapshot():
    return LeaderboardSnapshot(
        status="ok",
        tournament="U.S. Open",
        round="Round 4",
        round_status="Final Round",
        players=[PlayerEntry(name="Bryson DeChambeau", score="-6", thru="F", position="1")],
        fetched_at="2026-06-15T23:00:00.000Z"
    )


def assert_cors(response):
    for header, value in CORS_HEADERS.items():
        assert response.headers.get(header) == value


async def make_client(cache):
    server = LeaderboardHTTPServer(cache)
    client = TestClient(TestServer(server.build_app()))
    await client.start_server()
    return client


@pytest.mark.asyncio
class TestLeaderboardHTTPServer:

    @pytest.mark.parametrize("path", ["/", "/leaderboard"])
    async def test_leaderboard_routes(self, path):
        client = await make_client(StubCache(ok_snapshot()))
        try:
            response = await client.get(path)
            assert response.status == 200
            assert response.content_type == "application/json"
            assert_cors(response)

            body = await response.json()
            assert body["status"] == "ok"
            assert body["tournament"] == "U.S. Open"
            assert body["roundStatus"] == "Final Round"
            assert body["players"][0]["name"] == "Bryson DeChambeau"
        finally:
            await client.close()

    async def test_error_snapshot_is_200(self):
        client = await make_client(StubCache(LeaderboardSnapshot.error("Request timed out")))
        try:
            response = await client.get("/leaderboard")
            assert response.status == 200
            assert await response.json() == {"status": "error", "message": "Request timed out"}
        finally:
            await client.close()

    async def test_health(self):
        cache = StubCache(ok_snapshot())
        client = await make_client(cache)
        try:
            response = await client.get("/health")
            assert response.status == 200
            assert_cors(response)

            body = await response.json()
            assert body["ok"] is True
            assert body["uptime"] >= 0
            assert cache.calls == 0
        finally:
            await client.close()

    async def test_options_preflight(self):
        client = await make_client(StubCache(ok_snapshot()))
        try:
            for path in ("/leaderboard", "/anything/else"):
                response = await client.options(path)
                assert response.status == 204
                assert await response.read() == b""
                assert_cors(response)
        finally:
            await client.close()

    async def test_unknown_path(self):
        client = await make_client(StubCache(ok_snapshot()))
        try:
            response = await client.get("/scores")
            assert response.status == 404
            assert_cors(response)
            assert await response.json() == {"error": "Not found"}
        finally:
            await client.close()

    async def test_unsupported_method(self):
        client = await make_client(StubCache(ok_snapshot()))
        try:
            response = await client.post("/leaderboard")
            assert response.status == 404
            assert await response.json() == {"error": "Not found"}
        finally:
            await client.close()

    async def test_internal_error_is_500(self):
        client = await make_client(StubCache(error=RuntimeError("cache exploded")))
        try:
            response = await client.get("/leaderboard")
            assert response.status == 500
            assert_cors(response)
            assert await response.json() == {"status": "error", "message": "cache exploded"}
        finally:
            await client.close()
