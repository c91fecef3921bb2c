"""
Main orchestrator for the leaderboard proxy

Wires configuration, the upstream fetcher, the cache, and the local HTTP
server together. Handles startup (including the eager cache warm-up),
shutdown, and the command line interface.
"""

import asyncio
import errno
import json
import logging
import signal
import sys
import time
from typing import Dict, Any, Optional

from .config import ProxyConfig, load_config
from .cache import LeaderboardCache
from .fetcher import ScoreboardFetcher
from .server import LeaderboardHTTPServer

logger = logging.getLogger(__name__)


class ProxyMain:
    """Main orchestrator for the leaderboard proxy"""

    def __init__(self, config_path: str = "config/proxy.yaml", port: Optional[int] = None):
        self.config_path = config_path
        self.port_override = port
        self.config: Optional[ProxyConfig] = None
        self.fetcher: Optional[ScoreboardFetcher] = None
        self.cache: Optional[LeaderboardCache] = None
        self.server: Optional[LeaderboardHTTPServer] = None

        # Runtime state
        self.running = False
        self.startup_complete = False
        self.start_time = 0
        self._stopped: Optional[asyncio.Event] = None

    def initialize(self):
        """Initialize all proxy components"""
        self.start_time = time.time()

        self.config = load_config(self.config_path)
        if self.port_override:
            self.config.server.port = self.port_override
        self._setup_logging()

        logger.info(f"Loaded configuration from {self.config_path}")
        logger.info(f"Upstream feed: {self.config.feed.url}")

        self.fetcher = ScoreboardFetcher(self.config.feed)
        self.cache = LeaderboardCache(self.config.cache, self.fetcher)
        self.server = LeaderboardHTTPServer(
            self.cache,
            host=self.config.server.host,
            port=self.config.server.port
        )

        self.startup_complete = True

    async def start(self):
        """Bind the HTTP server and warm the cache"""
        if self.running:
            logger.warning("Proxy already running")
            return

        if not self.startup_complete:
            self.initialize()

        try:
            await self.server.start()
        except OSError as e:
            if e.errno == errno.EADDRINUSE:
                logger.error(f"Port {self.config.server.port} is already in use. "
                             "Close the other instance and try again.")
            else:
                logger.error(f"Server error: {e}")
            await self.fetcher.close()
            sys.exit(1)

        self.running = True
        self._stopped = asyncio.Event()
        self._log_banner()

        # Setup signal handlers
        if sys.platform != 'win32':
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.add_signal_handler(sig, lambda: asyncio.create_task(self.stop()))

        await self.cache.warm_up()

    async def stop(self):
        """Stop the proxy"""
        if not self.running:
            return

        logger.info("Stopping leaderboard proxy...")
        self.running = False

        if self.server:
            await self.server.stop()
        if self.fetcher:
            await self.fetcher.close()

        if self._stopped:
            self._stopped.set()
        logger.info("Leaderboard proxy stopped")

    async def run_forever(self):
        """Serve until stopped by a signal"""
        await self.start()

        try:
            await self._stopped.wait()
        finally:
            await self.stop()

    def _log_banner(self):
        base_url = self.config.base_url
        lines = [
            "",
            "  Road to Glory Golf - Leaderboard Proxy",
            "  =======================================",
            f"  Running at: {base_url}",
            f"  Leaderboard: {base_url}/leaderboard",
            "",
            "  Keep this window open while using the app.",
            "  Press Ctrl+C to stop.",
            "",
        ]
        for line in lines:
            logger.info(line)

    def _setup_logging(self):
        """Setup logging configuration"""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=log_level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        logging.getLogger('aiohttp').setLevel(logging.WARNING)

        if self.config.log_file:
            file_handler = logging.FileHandler(self.config.log_file)
            file_handler.setFormatter(
                logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            )
            logging.getLogger().addHandler(file_handler)

    def get_status(self) -> Dict[str, Any]:
        """Get proxy status"""
        status = {
            'running': self.running,
            'startup_complete': self.startup_complete,
            'config_path': self.config_path
        }

        if self.startup_complete:
            status['uptime'] = time.time() - self.start_time
            status['cache'] = self.cache.get_cache_stats()

        return status


async def fetch_once(config_path: str) -> Dict[str, Any]:
    """Fetch and normalize the leaderboard a single time"""
    proxy = ProxyMain(config_path)
    proxy.initialize()
    try:
        snapshot = await proxy.cache.get_leaderboard()
    finally:
        await proxy.fetcher.close()
    return snapshot.to_dict()


async def main():
    """Main entry point for the leaderboard proxy"""
    import argparse

    parser = argparse.ArgumentParser(description='Golf leaderboard proxy')
    parser.add_argument('--config', default='config/proxy.yaml',
                        help='Configuration file path')
    parser.add_argument('--create-config', action='store_true',
                        help='Create sample configuration file and exit')
    parser.add_argument('--port', type=int, default=None,
                        help='Override the configured listen port')
    parser.add_argument('--once', action='store_true',
                        help='Fetch the leaderboard once, print it, and exit')

    args = parser.parse_args()

    if args.create_config:
        from .config import create_sample_config
        create_sample_config(args.config)
        print(f"Sample configuration created at {args.config}")
        return

    if args.once:
        print(json.dumps(await fetch_once(args.config), indent=2))
        return

    proxy = ProxyMain(args.config, port=args.port)

    try:
        await proxy.run_forever()
    except KeyboardInterrupt:
        print("\nShutdown requested")


def cli():
    asyncio.run(main())


if __name__ == "__main__":
    cli()
