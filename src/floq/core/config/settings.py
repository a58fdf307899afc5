"""Application settings loaded from environment variables."""

from __future__ import annotations

from ipaddress import ip_address

from pydantic import model_validator
from pydantic_settings import BaseSettings


def is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


class Settings(BaseSettings):
    """Floq vibe engine configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default; the MCP surface has no auth layer.
    floq_host: str = "127.0.0.1"
    floq_port: int = 8011
    floq_log_level: str = "info"
    floq_allow_insecure_bind: bool = False

    # Collection loop
    vibe_collection_interval_s: float = 5.0
    vibe_max_snapshots: int = 120          # ~10 minutes at 5s cadence
    vibe_recent_window_s: float = 60.0
    vibe_state_snapshot_count: int = 10
    vibe_collect_timeout_s: float = 1.5    # 0 disables the per-collector timeout

    # Collectors
    vibe_timezone: str = ""                # IANA name; empty = host local time
    vibe_scenario_path: str = ""           # YAML file of scripted collectors

    @model_validator(mode="after")
    def _require_loopback_bind(self) -> Settings:
        if not self.floq_allow_insecure_bind and not is_loopback_host(self.floq_host):
            raise ValueError(
                f"floq_host={self.floq_host!r} is not a loopback address; "
                "set FLOQ_ALLOW_INSECURE_BIND=true to expose the unauthenticated server"
            )
        return self


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
