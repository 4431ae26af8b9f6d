"""Configuration management"""
import os
from pathlib import Path

import pytz
from dotenv import load_dotenv

from routinely.exceptions import ConfigurationError

load_dotenv()

# Storage
# - 'file' (default): single JSON document under DATA_PATH, survives restarts
# - 'memory': process-local dict, nothing is persisted
# - 'redis': keys live in the Redis instance at REDIS_URL
STORE_BACKEND: str = os.getenv("STORE_BACKEND", "file").lower()
DATA_PATH: Path = Path(os.getenv("DATA_PATH", "./data"))
STORE_FILENAME: str = os.getenv("STORE_FILENAME", "routinely.json")
REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
REDIS_KEY_PREFIX: str = os.getenv("REDIS_KEY_PREFIX", "routinely:")

# Calendar days are computed in this IANA timezone (empty = device local time)
TIMEZONE: str = os.getenv("TIMEZONE", "")

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Progression
HISTORY_LIMIT: int = int(os.getenv("HISTORY_LIMIT", "1000"))
XP_PER_LEVEL: int = int(os.getenv("XP_PER_LEVEL", "100"))

# First launch
SEED_DEFAULT_ROUTINE: bool = os.getenv("SEED_DEFAULT_ROUTINE", "true").lower() == "true"

VALID_BACKENDS = ("file", "memory", "redis")


# Validation
def validate_config() -> None:
    """Validate configuration values"""
    if STORE_BACKEND not in VALID_BACKENDS:
        raise ConfigurationError(
            f"Unknown STORE_BACKEND '{STORE_BACKEND}'. Use one of: {', '.join(VALID_BACKENDS)}",
            config_key="STORE_BACKEND",
        )
    if STORE_BACKEND == "redis" and not REDIS_URL:
        raise ConfigurationError("REDIS_URL is required for the redis backend", config_key="REDIS_URL")
    if TIMEZONE:
        try:
            pytz.timezone(TIMEZONE)
        except pytz.exceptions.UnknownTimeZoneError:
            raise ConfigurationError(
                f"Invalid timezone: '{TIMEZONE}'. Use IANA timezone (e.g., 'Europe/Madrid')",
                config_key="TIMEZONE",
            )
    if HISTORY_LIMIT <= 0:
        raise ConfigurationError("HISTORY_LIMIT must be positive", config_key="HISTORY_LIMIT")
    if XP_PER_LEVEL <= 0:
        raise ConfigurationError("XP_PER_LEVEL must be positive", config_key="XP_PER_LEVEL")
