"""Settings loaded from environment variables (+ optional .env).

The store URL and access key are required; building the app without them
fails immediately.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

from dotenv import find_dotenv, load_dotenv

CORS_ORIGINS: List[str] = [
    "http://localhost:3000",
    "http://localhost:3001",
    "http://localhost:5173",
    "http://localhost:5174",
    "http://localhost:8080",
]
CORS_METHODS: List[str] = ["GET", "POST", "PATCH", "DELETE", "PUT", "OPTIONS"]
CORS_HEADERS: List[str] = ["Content-Type", "Authorization", "X-Requested-With"]
CORS_MAX_AGE = 86400  # 24h preflight cache


class ConfigError(RuntimeError):
    pass


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    store_url: str
    store_key: str
    log_level: str = "INFO"
    log_dir: Path = Path("./logs")
    host: str = "0.0.0.0"
    port: int = 3000

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv(find_dotenv(usecwd=True), override=False)

        store_url = _env("TASKS_STORE_URL").strip()
        store_key = _env("TASKS_STORE_KEY").strip()
        missing = [
            name
            for name, value in (("TASKS_STORE_URL", store_url), ("TASKS_STORE_KEY", store_key))
            if not value
        ]
        if missing:
            raise ConfigError(f"Missing store settings in environment: {', '.join(missing)}")

        return cls(
            store_url=store_url,
            store_key=store_key,
            log_level=_env("LOG_LEVEL", "INFO").upper(),
            log_dir=Path(_env("LOG_DIR", "./logs")).expanduser(),
            host=_env("HOST", "0.0.0.0"),
            port=_env_int("PORT", 3000),
        )
