"""Pydantic Settings: typed configuration with .env auto-loading."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client configuration loaded from environment / .env file."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Backend API ──────────────────────────────────────────
    api_base_url: str = "http://localhost:8080/api"
    api_timeout: float = 30.0  # seconds

    # ── Retry policy ─────────────────────────────────────────
    api_max_retries: int = 3  # retries after the original attempt
    retry_base_delay: float = 1.0  # seconds, doubles each attempt
    retry_max_delay: float = 16.0  # seconds

    # ── Session / credentials ────────────────────────────────
    login_path: str = "/login"
    # Checked in order; older front-end builds stored the JWT under other keys
    token_keys: list[str] = ["accessToken", "authToken", "token"]
    # Everything removed when the session is deemed expired
    auth_storage_keys: list[str] = [
        "accessToken",
        "refreshToken",
        "authToken",
        "token",
        "filiup_user",
    ]
    token_file: str = "data/credentials.json"

    # ── Activity engine ──────────────────────────────────────
    check_reveal_seconds: float = 3.0  # drag-drop / matching-pairs
    question_reveal_seconds: float = 2.5  # multiple-choice / story


@lru_cache
def get_settings() -> Settings:
    """Singleton accessor for client settings."""
    return Settings()
