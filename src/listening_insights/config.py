from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from listening_insights.errors import ConfigurationError

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def load_local_env_file(env_path: str = ".env") -> None:
    """Load key=value pairs from a local .env file into process env.

    Existing environment variables are preserved and not overwritten.
    """

    path = Path(env_path)
    if not path.exists():
        return

    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")

        if key and key not in os.environ:
            os.environ[key] = value


def _env_first(*names: str) -> str | None:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


def _env_float(name: str, fallback: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return fallback
    try:
        return float(raw)
    except ValueError:
        return fallback


@dataclass(frozen=True, slots=True)
class Settings:
    client_id: str | None = None
    client_secret: str | None = None
    redirect_uri: str | None = None
    token_cache_ttl: float = 3500.0
    http_timeout: float = 10.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            client_id=_env_first("SPOTIFY_CLIENT_ID", "SPOTIPY_CLIENT_ID"),
            client_secret=_env_first("SPOTIFY_CLIENT_SECRET", "SPOTIPY_CLIENT_SECRET"),
            redirect_uri=_env_first("SPOTIFY_REDIRECT_URI", "SPOTIPY_REDIRECT_URI"),
            token_cache_ttl=_env_float("TOKEN_CACHE_TTL_SECONDS", 3500.0),
            http_timeout=_env_float("HTTP_TIMEOUT_SECONDS", 10.0),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def require_client_credentials(self) -> tuple[str, str]:
        missing = [
            name
            for name, value in (("SPOTIFY_CLIENT_ID", self.client_id), ("SPOTIFY_CLIENT_SECRET", self.client_secret))
            if not value
        ]
        if missing:
            missing_list = ", ".join(missing)
            raise ConfigurationError(
                f"Missing Spotify credentials: {missing_list}. "
                "Set them in environment variables or local .env file."
            )
        return self.client_id, self.client_secret


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=_LOG_FORMAT)
