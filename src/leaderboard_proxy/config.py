"""
Configuration loader for the leaderboard proxy

Handles loading and parsing of YAML/JSON configuration files for:
- The upstream scoreboard feed (URL, headers, timeout)
- Cache freshness window
- Local HTTP server binding
- Logging
"""

import json
import yaml
import os
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


ESPN_PGA_SCOREBOARD_URL = "https://site.api.espn.com/apis/site/v2/sports/golf/pga/scoreboard"
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"
)


@dataclass
class FeedConfig:
    """Configuration for the upstream scoreboard feed"""
    url: str = ESPN_PGA_SCOREBOARD_URL
    user_agent: str = BROWSER_USER_AGENT
    timeout_seconds: float = 10


@dataclass
class CacheConfig:
    """Configuration for caching behavior"""
    ttl_seconds: float = 60


@dataclass
class ServerConfig:
    """Configuration for the local HTTP server"""
    host: str = "127.0.0.1"
    port: int = 3747


@dataclass
class ProxyConfig:
    """Main configuration class for the leaderboard proxy"""
    feed: FeedConfig = field(default_factory=FeedConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def load_from_file(cls, config_path: str) -> 'ProxyConfig':
        """Load configuration from YAML or JSON file"""
        path = Path(config_path)

        if not path.exists():
            logger.warning(f"Config file {config_path} not found, using defaults")
            return cls()

        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix.lower() in ['.yaml', '.yml']:
                config_data = yaml.safe_load(f)
            else:
                config_data = json.load(f)

        return cls.from_dict(config_data or {})

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'ProxyConfig':
        """Create configuration from dictionary"""
        feed_config = FeedConfig(**config_dict.get('feed', {}))
        cache_config = CacheConfig(**config_dict.get('cache', {}))
        server_config = ServerConfig(**config_dict.get('server', {}))

        main_config = {k: v for k, v in config_dict.items()
                       if k not in ['feed', 'cache', 'server']}
        main_config.update({
            'feed': feed_config,
            'cache': cache_config,
            'server': server_config
        })

        return cls(**main_config)

    @property
    def base_url(self) -> str:
        """Local URL the proxy is reachable at"""
        host = 'localhost' if self.server.host in ('127.0.0.1', '::1') else self.server.host
        return f"http://{host}:{self.server.port}"


def load_config(config_path: str = "config/proxy.yaml") -> ProxyConfig:
    """Load proxy configuration from file or use defaults"""
    try:
        return ProxyConfig.load_from_file(config_path)
    except Exception as e:
        logger.error(f"Failed to load config from {config_path}: {e}")
        logger.info("Using default configuration")
        return ProxyConfig()


def create_sample_config(output_path: str = "config/proxy.yaml"):
    """Create a sample configuration file"""
    config_dict = {
        'feed': {
            'url': ESPN_PGA_SCOREBOARD_URL,
            'user_agent': BROWSER_USER_AGENT,
            'timeout_seconds': 10
        },
        'cache': {
            'ttl_seconds': 60
        },
        'server': {
            'host': '127.0.0.1',
            'port': 3747
        },
        'log_level': 'INFO'
    }

    directory = os.path.dirname(output_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)

    logger.info(f"Sample configuration created at {output_path}")
