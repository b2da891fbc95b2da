"""Central configuration & logging utilities."""
from __future__ import annotations

import logging
import os
import sys
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

APP_NAME = "aeo_analyzer"


class ConfigError(Exception):
    pass


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


class Settings(BaseModel):
    ENV: str = os.getenv('ENV', 'development')
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')
    LOG_DIR: str = os.getenv('LOG_DIR', '')

    # Database
    DATABASE_URL: str = os.getenv('DATABASE_URL', 'sqlite:///./aeo.db')

    # Fetch guards
    FETCH_TIMEOUT_MS: int = _env_int('AEO_FETCH_TIMEOUT_MS', 12000)
    MAX_HTML_BYTES: int = _env_int('AEO_MAX_HTML_BYTES', 2_000_000)
    MAX_TEXT_CHARS: int = _env_int('AEO_MAX_TEXT_CHARS', 200_000)
    MAX_REDIRECTS: int = _env_int('AEO_MAX_REDIRECTS', 5)

    # Privacy & housekeeping
    IP_HASH_SALT: str = os.getenv('AEO_IP_HASH_SALT', '')
    USAGE_RETENTION_DAYS: int = _env_int('AEO_USAGE_RETENTION_DAYS', 7)
    AUDIT_LIST_LIMIT: int = _env_int('AEO_AUDIT_LIST_LIMIT', 50)

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == 'production'

    @property
    def database_url(self) -> str:
        # Railway hands out 'postgres://'; pin the psycopg (v3) driver
        url = self.DATABASE_URL
        if url.startswith('postgres://'):
            url = url.replace('postgres://', 'postgresql+psycopg://', 1)
        elif url.startswith('postgresql://'):
            url = url.replace('postgresql://', 'postgresql+psycopg://', 1)
        return url

    def validate_runtime(self) -> None:
        if self.is_production and not self.IP_HASH_SALT:
            raise ConfigError('AEO_IP_HASH_SALT is required in production for privacy compliance.')
        if not self.IP_HASH_SALT:
            logging.getLogger(APP_NAME).warning(
                "AEO_IP_HASH_SALT not set. Using empty salt for development."
            )


@lru_cache
def get_settings() -> Settings:
    return Settings()


def setup_logging(level: str = 'INFO', log_dir: Optional[str] = None) -> logging.Logger:
    lvl = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(APP_NAME)
    logger.setLevel(lvl)
    logger.handlers.clear()
    logger.propagate = False

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(lvl)
    ch.setFormatter(formatter)
    logger.addHandler(ch)

    if log_dir:
        path = Path(log_dir).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(path / f"{APP_NAME}.log", encoding="utf-8")
        fh.setLevel(lvl)
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    return logger
