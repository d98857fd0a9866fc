from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

ENV_FILE = Path(".env")

LOG_LEVELS: frozenset[str] = frozenset(
    {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
)


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_float(value: str | None, default: float) -> float:
    if value is None or not value.strip():
        return default
    return float(value)


@dataclass
class Settings:
    GCS_PROJECT_ID: str | None = None
    GCS_BUCKET: str | None = None
    GCS_STORAGE_HOST: str = "storage.googleapis.com"
    GCS_UPLOAD_HOST: str = "www.googleapis.com"
    GCS_API_BASE_URL: str = "https://www.googleapis.com/storage/v1/"
    GCS_USER_AGENT: str = "gcsbucket-python"
    GCS_REQUEST_TIMEOUT: float = 60.0
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    TRACE_HTTP: bool = False

    def __post_init__(self) -> None:
        if not self.GCS_API_BASE_URL.lower().startswith("https://"):
            raise ValueError("GCS_API_BASE_URL must be an https:// URL.")
        if not self.GCS_API_BASE_URL.endswith("/"):
            raise ValueError(
                "GCS_API_BASE_URL must end with '/' so resource paths resolve under it."
            )
        if self.GCS_REQUEST_TIMEOUT <= 0:
            raise ValueError("GCS_REQUEST_TIMEOUT must be > 0 seconds.")
        self.LOG_LEVEL = self.LOG_LEVEL.upper()
        if self.LOG_LEVEL not in LOG_LEVELS:
            raise ValueError(
                "LOG_LEVEL must be DEBUG, INFO, WARNING, ERROR, or CRITICAL."
            )

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            GCS_PROJECT_ID=os.environ.get("GCS_PROJECT_ID") or None,
            GCS_BUCKET=os.environ.get("GCS_BUCKET") or None,
            GCS_STORAGE_HOST=os.environ.get(
                "GCS_STORAGE_HOST", cls.GCS_STORAGE_HOST
            ),
            GCS_UPLOAD_HOST=os.environ.get("GCS_UPLOAD_HOST", cls.GCS_UPLOAD_HOST),
            GCS_API_BASE_URL=os.environ.get(
                "GCS_API_BASE_URL", cls.GCS_API_BASE_URL
            ),
            GCS_USER_AGENT=os.environ.get("GCS_USER_AGENT", cls.GCS_USER_AGENT),
            GCS_REQUEST_TIMEOUT=_as_float(
                os.environ.get("GCS_REQUEST_TIMEOUT"), cls.GCS_REQUEST_TIMEOUT
            ),
            LOG_LEVEL=os.environ.get("LOG_LEVEL", cls.LOG_LEVEL),
            LOG_JSON=_as_bool(os.environ.get("LOG_JSON"), cls.LOG_JSON),
            TRACE_HTTP=_as_bool(os.environ.get("TRACE_HTTP"), cls.TRACE_HTTP),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
