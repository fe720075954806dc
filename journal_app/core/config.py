from __future__ import annotations

import json
import os
from pathlib import Path
from typing import ClassVar, Optional

from pydantic import BaseModel, Field, field_validator

from .paths import data_dir


def _default_config_path() -> Path:
    return data_dir() / "config.json"


_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


def _default_cors_origins() -> list[str]:
    return ["http://localhost:3000", "http://localhost:8000"]


class AppConfig(BaseModel):
    supabase_url: str = ""
    supabase_anon_key: str = ""
    storage_bucket: str = "entry-files"
    entries_table: str = "entries"

    signed_url_ttl_seconds: int = Field(default=3600, gt=0)
    max_upload_bytes: int = Field(default=2 * 1024 * 1024, gt=0)

    session_cookie_name: str = "journal_session"
    refresh_cookie_name: str = "journal_refresh"
    cookie_secure: bool = False

    cors_origins: list[str] = Field(default_factory=_default_cors_origins)
    host: str = "127.0.0.1"
    port: int = 8000

    log_level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = ""
    log_rotation: str = "10 MB"
    log_retention: str = "10 days"

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level: {value}")
        return level


def _as_bool(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class ConfigManager:
    _instance: ClassVar[Optional["ConfigManager"]] = None

    def __init__(self, config_path: Optional[Path] = None) -> None:
        env_path = os.getenv("JOURNAL_CONFIG")
        if config_path is None and env_path:
            config_path = Path(env_path)
        self._config_path = (config_path or _default_config_path()).expanduser()
        self._config = self._load_config()

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def config_path(self) -> Path:
        return self._config_path

    def _load_config(self) -> AppConfig:
        data: dict[str, object] = {}
        if self._config_path.exists():
            data = json.loads(self._config_path.read_text(encoding="utf-8"))

        for key, env_name in {
            "supabase_url": "JOURNAL_SUPABASE_URL",
            "supabase_anon_key": "JOURNAL_SUPABASE_ANON_KEY",
            "storage_bucket": "JOURNAL_STORAGE_BUCKET",
            "entries_table": "JOURNAL_ENTRIES_TABLE",
            "session_cookie_name": "JOURNAL_SESSION_COOKIE",
            "refresh_cookie_name": "JOURNAL_REFRESH_COOKIE",
            "host": "JOURNAL_HOST",
            "log_level": "JOURNAL_LOG_LEVEL",
            "log_dir": "JOURNAL_LOG_DIR",
        }.items():
            env_value = os.getenv(env_name)
            if env_value:
                data[key] = env_value

        for key, env_name in {
            "signed_url_ttl_seconds": "JOURNAL_SIGNED_URL_TTL",
            "max_upload_bytes": "JOURNAL_MAX_UPLOAD_BYTES",
            "port": "JOURNAL_PORT",
        }.items():
            env_value = os.getenv(env_name)
            if env_value:
                data[key] = int(env_value)

        for key, env_name in {
            "cookie_secure": "JOURNAL_COOKIE_SECURE",
            "log_to_file": "JOURNAL_LOG_TO_FILE",
        }.items():
            env_value = os.getenv(env_name)
            if env_value:
                data[key] = _as_bool(env_value)

        env_origins = os.getenv("JOURNAL_CORS_ORIGINS")
        if env_origins:
            data["cors_origins"] = [
                origin.strip() for origin in env_origins.split(",") if origin.strip()
            ]

        return AppConfig.model_validate(data)

    @classmethod
    def get(cls) -> "ConfigManager":
        if cls._instance is None:
            cls._instance = ConfigManager()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        cls._instance = None
