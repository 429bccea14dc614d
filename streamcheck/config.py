"""
Configuration management for streamcheck.
Loads environment variables and provides easy access to settings.
"""

import os
from dataclasses import dataclass
from dotenv import load_dotenv
from typing import Optional

from streamcheck.exceptions import ConfigurationError

# Load environment variables from .env file
load_dotenv()

# Placeholder values shipped in sample configs; they mean "not configured"
DEFAULT_CLIENT_ID = "abcd1234"
DEFAULT_CLIENT_SECRET = "abcd1234"

STORE_BACKENDS = ("file", "supabase", "memory")
PUBLISHER_SOURCES = ("config", "supabase")


@dataclass(frozen=True)
class TwitchCredentials:
    """Twitch application credentials used for the client-credentials grant."""

    client_id: str
    client_secret: str

    def validate(self):
        """Raise ConfigurationError if either value is still its placeholder."""
        if self.client_id == DEFAULT_CLIENT_ID:
            raise ConfigurationError(
                "Default twitch client id value detected. Skipping twitch call"
            )
        if self.client_secret == DEFAULT_CLIENT_SECRET:
            raise ConfigurationError(
                "Default twitch client secret value detected. Skipping twitch call"
            )


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


class Config:
    """Configuration class that loads and validates environment variables."""

    def __init__(self):
        # Twitch API Configuration
        self.TWITCH_CLIENT_ID: str = os.getenv("TWITCH_CLIENT_ID", DEFAULT_CLIENT_ID)
        self.TWITCH_CLIENT_SECRET: str = os.getenv("TWITCH_CLIENT_SECRET", DEFAULT_CLIENT_SECRET)
        self.TWITCH_CHANNELS: str = os.getenv("TWITCH_CHANNELS", "")

        # Storage Configuration
        self.STORE_BACKEND: str = os.getenv("STORE_BACKEND", "file").lower()
        self.TOKEN_FILE: str = os.getenv("TOKEN_FILE", "streamcheck_store.json")
        self.PUBLISHER_SOURCE: str = os.getenv("PUBLISHER_SOURCE", "config").lower()

        # Supabase Configuration (only needed by the supabase backends)
        self.SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
        self.SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "")

        # Application Settings
        self.HTTP_TIMEOUT_SECONDS: Optional[float] = _env_float("HTTP_TIMEOUT_SECONDS")
        self.REFRESH_ON_MISSING: bool = _env_bool("REFRESH_ON_MISSING")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    def require_supabase(self):
        """Raise if a supabase-backed component is selected without credentials."""
        missing_vars = [
            name for name, value in (("SUPABASE_URL", self.SUPABASE_URL), ("SUPABASE_KEY", self.SUPABASE_KEY))
            if not value
        ]
        if missing_vars:
            raise ConfigurationError(f"Missing required environment variables: {', '.join(missing_vars)}")

    @property
    def debug_mode(self) -> bool:
        """Check if debug mode is enabled."""
        return self.LOG_LEVEL.upper() == "DEBUG"

    @property
    def credentials(self) -> TwitchCredentials:
        return TwitchCredentials(self.TWITCH_CLIENT_ID, self.TWITCH_CLIENT_SECRET)


_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config
