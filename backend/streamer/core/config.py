from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _dotenv_override_enabled() -> bool:
    v = os.getenv("DOTENV_OVERRIDE", "").strip().lower()
    return v in {"1", "true", "yes", "y", "on"}


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def load_env_files(*, repo_root: Path | None = None) -> list[Path]:
    """
    Load environment variables from local env files using python-dotenv.

    - OS environment variables win unless DOTENV_OVERRIDE=true.
    - Returns the env file paths that were found and loaded.
    """
    root = repo_root or Path(__file__).resolve().parents[3]
    candidates = [
        root / "backend" / ".env",
        root / "backend" / "env",
    ]

    loaded: list[Path] = []
    for p in candidates:
        if p.exists() and p.is_file():
            load_dotenv(dotenv_path=p, override=_dotenv_override_enabled())
            loaded.append(p)
    return loaded


class Settings(BaseSettings):
    # Sourced from env files loaded by load_env_files, then OS environment.
    model_config = SettingsConfigDict(extra="ignore")

    env: Literal["dev", "test", "prod"] = "dev"
    log_level: str = "INFO"

    allowed_origins: str = "http://localhost:5173"

    # Advisory: the stream core never enforces it, ClientLimiter does.
    sse_max_clients: int = Field(default=500, ge=0)
    sse_connection_timeout_seconds: int = Field(default=300, ge=0)
    sse_pacing_interval_seconds: float = Field(default=1.0, gt=0)

    # Extra event types allowed on top of message/status/update/error.
    sse_event_types: str = ""

    @property
    def allowed_origins_list(self) -> list[str]:
        return _split_csv(self.allowed_origins)

    @property
    def sse_event_types_list(self) -> list[str]:
        return _split_csv(self.sse_event_types)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_env_files()
    return Settings()
