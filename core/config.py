"""Configuration models and loading."""

import json
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

CONFIG_DIR = Path.home() / ".config" / "signature-gate-proxy"
CONFIG_FILE = CONFIG_DIR / "config.json"


class ProxySettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080
    max_body_size: int = 50 * 1024 * 1024  # 50MB
    # Write every inbound request to logs/incoming
    debug: bool = False


class UpstreamSettings(BaseModel):
    base_url: str = "https://sep.shaparak.ir"

    @property
    def origin(self) -> str:
        return self.base_url.rstrip("/")


class KeySettings(BaseModel):
    public_key_path: Path = Path("public_key.pem")
    # Re-read on every request unless enabled; cached keys still follow file rotation
    cache: bool = False


class TimeoutSettings(BaseModel):
    """Timeouts in seconds."""

    read: float = 10.0
    write: float = 15.0
    idle: float = 30.0
    upstream: float = 10.0
    connect: float = 30.0
    keepalive: float = 30.0


class PoolSettings(BaseModel):
    max_connections: int = 100
    max_keepalive_connections: int = 5
    keepalive_expiry: float = 30.0


class Config(BaseModel):
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    key: KeySettings = Field(default_factory=KeySettings)
    timeouts: TimeoutSettings = Field(default_factory=TimeoutSettings)
    pool: PoolSettings = Field(default_factory=PoolSettings)


def load_config(path: Path = CONFIG_FILE) -> Config:
    """Load configuration from JSON file, creating default if needed."""
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        default = Config()
        path.write_text(default.model_dump_json(indent=2))
        return default

    try:
        data = json.loads(path.read_text())
        return Config.model_validate(data)
    except (json.JSONDecodeError, ValidationError):
        # Backup corrupted config and recreate default
        backup = path.with_suffix(".json.bak")
        path.rename(backup)
        default = Config()
        path.write_text(default.model_dump_json(indent=2))
        return default
