"""Application settings powered by ``pydantic-settings``."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Literal, Sequence

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from ... import __version__ as package_version


def _resolve_repository_root() -> Path:
    """Locate the repository root that holds the ``src`` directory."""

    current = Path(__file__).resolve()
    for parent in current.parents:
        if parent.name == "src":
            return parent.parent
    return Path.cwd()


REPOSITORY_ROOT = _resolve_repository_root()

EnvironmentName = Literal["development", "test", "ci", "production"]

_ENVIRONMENT_ALIASES: dict[str, EnvironmentName] = {
    "development": "development",
    "dev": "development",
    "test": "test",
    "testing": "test",
    "ci": "ci",
    "production": "production",
    "prod": "production",
}

_ENVIRONMENT_PROFILES: dict[EnvironmentName, dict[str, Any]] = {
    "development": {
        "log_level": "DEBUG",
        "reload": True,
        "db_echo": False,
        "auto_create_tables": True,
        "session_cookie_secure": False,
    },
    "test": {
        "log_level": "WARNING",
        "reload": False,
        "db_echo": False,
        "auto_create_tables": False,
        "session_cookie_secure": False,
    },
    "ci": {
        "log_level": "INFO",
        "reload": False,
        "db_echo": False,
        "auto_create_tables": False,
        "session_cookie_secure": False,
    },
    "production": {
        "log_level": "INFO",
        "reload": False,
        "db_echo": False,
        "auto_create_tables": False,
        "session_cookie_secure": True,
    },
}

MEBIBYTE = 1024 * 1024
KIBIBYTE = 1024

# Room for multipart boundaries, part headers and the form field names.
MULTIPART_OVERHEAD_BYTES = 64 * KIBIBYTE

CommaSeparatedList = Annotated[list[str], NoDecode]


class Settings(BaseSettings):
    """Runtime configuration for the TaskVault service."""

    model_config = SettingsConfigDict(
        env_prefix="TASKVAULT_",
        env_file=(REPOSITORY_ROOT / ".env",),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    project_name: str = "TaskVault"
    environment: EnvironmentName = Field(default="development")
    api_prefix: str = Field(default="/api")
    version: str = Field(default=package_version)
    database_url: str = Field(default="sqlite+aiosqlite:///./taskvault.db")
    db_echo: bool = Field(default=False)
    auto_create_tables: bool = Field(default=True)
    cors_allow_origins: CommaSeparatedList = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"],
    )
    cors_allow_credentials: bool = Field(default=True)
    cors_allow_methods: CommaSeparatedList = Field(default_factory=lambda: ["*"])
    cors_allow_headers: CommaSeparatedList = Field(default_factory=lambda: ["*"])
    app_host: str = Field(default="0.0.0.0")
    app_port: int = Field(default=3000)
    log_level: str = Field(default="INFO")
    reload: bool = Field(default=True)

    jwt_secret_key: str = Field(default="change-me")
    jwt_algorithm: str = Field(default="HS256")
    session_token_expire_days: int = Field(default=7)
    session_cookie_name: str = Field(default="token")
    session_cookie_secure: bool = Field(default=False)

    upload_dir: Path = Field(default=REPOSITORY_ROOT / "uploads")
    max_upload_bytes: int = Field(default=5 * MEBIBYTE)
    max_upload_files: int = Field(default=5)

    @field_validator("environment", mode="before")
    @classmethod
    def _normalise_environment(cls, value: object) -> EnvironmentName:
        if isinstance(value, str):
            normalized = value.strip().lower()
        else:
            normalized = ""
        return _ENVIRONMENT_ALIASES.get(normalized, "development")

    @field_validator(
        "cors_allow_origins",
        "cors_allow_methods",
        "cors_allow_headers",
        mode="before",
    )
    @classmethod
    def _coerce_comma_separated(cls, value: object) -> list[str]:
        """Allow comma separated strings or JSON arrays for CORS configuration."""

        if isinstance(value, str) and value.strip().startswith("["):
            value = json.loads(value)
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, Sequence):
            return [str(item) for item in value if str(item).strip()]
        return []

    @field_validator(
        "session_token_expire_days",
        "max_upload_bytes",
        "max_upload_files",
        mode="before",
    )
    @classmethod
    def _ensure_positive(cls, value: object) -> int:
        try:
            parsed = int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ValueError("Expected a positive integer.") from exc
        if parsed <= 0:
            raise ValueError("Expected a positive integer.")
        return parsed

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: object) -> str:
        if not isinstance(value, str):
            return "INFO"
        return value.upper()

    @model_validator(mode="after")
    def _apply_environment_profile(self) -> "Settings":
        profile = _ENVIRONMENT_PROFILES[self.environment]
        fields_set = set(getattr(self, "model_fields_set", set()))
        for field_name, value in profile.items():
            if field_name not in fields_set:
                setattr(self, field_name, value)
        return self

    @property
    def session_max_age_seconds(self) -> int:
        return self.session_token_expire_days * 24 * 60 * 60

    @property
    def max_upload_request_bytes(self) -> int:
        """Largest multipart body accepted before the form is parsed."""

        return self.max_upload_bytes * self.max_upload_files + MULTIPART_OVERHEAD_BYTES


@lru_cache()
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance."""

    return Settings()


__all__ = [
    "EnvironmentName",
    "MEBIBYTE",
    "MULTIPART_OVERHEAD_BYTES",
    "Settings",
    "get_settings",
]
