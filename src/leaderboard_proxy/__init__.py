"""
Golf Leaderboard Proxy

A small local proxy that fetches the ESPN PGA Tour scoreboard, normalizes
it into a compact leaderboard, caches it briefly and serves it over
loopback HTTP with permissive CORS headers for browser clients.
"""

__version__ = "1.0.0"
__author__ = "Road to Glory Golf Team"
