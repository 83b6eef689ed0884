"""Global configuration — XDG paths, env vars, scan timing defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _default_data_dir() -> Path:
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg) / "checkoutinspector"
    return Path.home() / ".local" / "share" / "checkoutinspector"


def _default_config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "checkoutinspector"
    return Path.home() / ".config" / "checkoutinspector"


@dataclass
class InspectorConfig:
    """Application-wide configuration."""

    data_dir: Path = field(default_factory=_default_data_dir)
    config_dir: Path = field(default_factory=_default_config_dir)

    # Scan pipeline timing (seconds)
    tab_ready_timeout: float = 15.0
    settle_delay: float = 2.0
    extract_retry_interval: float = 0.5
    extract_retry_timeout: float = 4.0

    # Degraded-signal network calls
    header_probe_timeout: float = 5.0
    bundle_fetch_timeout: float = 2.5
    bundle_fetch_limit: int = 4
    bundle_scan_limit: int = 1_500_000

    registry_url: str = "https://registry.npmjs.org/@adyen/adyen-web/latest"
    registry_cache_ttl: float = 24 * 60 * 60

    web_host: str = "127.0.0.1"  # Loopback only
    web_port: int = 8471
    verbose: bool = False

    @property
    def db_path(self) -> Path:
        return self.data_dir / "checkoutinspector.db"

    @classmethod
    def load(cls) -> InspectorConfig:
        """Load config from environment variables with XDG defaults."""
        config = cls()

        env_settle = os.environ.get("CHECKOUTINSPECTOR_SETTLE_DELAY")
        if env_settle:
            config.settle_delay = float(env_settle)

        env_timeout = os.environ.get("CHECKOUTINSPECTOR_TAB_TIMEOUT")
        if env_timeout:
            config.tab_ready_timeout = float(env_timeout)

        env_registry = os.environ.get("CHECKOUTINSPECTOR_REGISTRY_URL")
        if env_registry:
            config.registry_url = env_registry

        env_port = os.environ.get("CHECKOUTINSPECTOR_WEB_PORT")
        if env_port:
            config.web_port = int(env_port)

        return config
