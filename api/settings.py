"""
Lodging API settings, read from the environment and .env via pydantic-settings.

Variables (case-insensitive):
    AUTH_MODE                  bypass | production (containers always run production)
    ADMIN_USER_IDS             operator ids allowed to edit, comma-separated; empty = every operator
    POCKETBASE_URL             PocketBase base URL
    POCKETBASE_ADMIN_EMAIL     superuser the API signs in as
    POCKETBASE_ADMIN_PASSWORD
    EVENT_ID                   tour event whose registrations form the roster
    ALLOWED_ORIGINS            CORS origins, comma-separated
    *_COLLECTION               collection name overrides
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

AUTH_MODES = ("bypass", "production")
INSECURE_PASSWORDS = frozenset({"", "password", "admin", "123456", "changeme"})


def _is_docker_environment() -> bool:
    if Path("/.dockerenv").exists():
        return True
    try:
        return "docker" in Path("/proc/1/cgroup").read_text()
    except OSError:
        return False


def _is_github_actions() -> bool:
    return os.getenv("CI") == "true" and os.getenv("GITHUB_ACTIONS") == "true"


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Lodging API settings. Defaults suit a local PocketBase on port 8090."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    # Operator access
    auth_mode: str = "production"
    admin_user_ids_str: str = Field(default="", alias="ADMIN_USER_IDS")
    skip_pb_auth: bool = Field(default=False, description="Do not sign in to PocketBase at startup (tests)")

    # PocketBase
    pocketbase_url: str = "http://127.0.0.1:8090"
    pocketbase_admin_email: str = "admin@tour.local"
    pocketbase_admin_password: str = ""

    assignments_collection: str = "room_assignments"
    inventory_collection: str = "room_inventory"
    registrations_collection: str = "registrations"
    profiles_collection: str = "users"
    event_id: str = ""

    allowed_origins_str: str = Field(default="http://localhost:3000,http://localhost:5173", alias="ALLOWED_ORIGINS")

    # Set by the container image; file-based detection covers images that do not
    is_docker: bool = False

    @field_validator("auth_mode", mode="after")
    @classmethod
    def validate_auth_mode(cls, v: str) -> str:
        mode = v.strip().lower()
        if mode not in AUTH_MODES:
            raise ValueError(f"Invalid AUTH_MODE: {v}. Must be one of {', '.join(AUTH_MODES)}")
        return mode

    @field_validator("pocketbase_admin_password", mode="after")
    @classmethod
    def warn_insecure_password(cls, v: str) -> str:
        if v in INSECURE_PASSWORDS:
            logger.warning(
                "SECURITY WARNING: POCKETBASE_ADMIN_PASSWORD is empty or a well-known default; "
                "set a real password in .env before sharing this API"
            )
        return v

    @property
    def allowed_origins(self) -> list[str]:
        return _split_csv(self.allowed_origins_str)

    @property
    def admin_user_ids(self) -> list[str]:
        return _split_csv(self.admin_user_ids_str)

    def is_docker_environment(self) -> bool:
        return self.is_docker or _is_docker_environment()

    def get_effective_auth_mode(self) -> str:
        """Configured auth mode, forced to production inside a container unless on CI."""
        if self.auth_mode == "bypass" and self.is_docker_environment() and not _is_github_actions():
            logger.warning("AUTH_MODE=bypass ignored inside a container; using production")
            return "production"
        return self.auth_mode


@lru_cache
def get_settings() -> Settings:
    return Settings()
