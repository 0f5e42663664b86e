"""
Configuration loading for the WordPress → Contentful migration.

Configuration is supplied via a JSON file (``config/migration_config.json``
by default).  The ``wordpress`` section must include ``endpoint``; the
``contentful`` section must include ``access_token`` and ``space_id``.
Optional migration settings (dry-run, concurrency, report paths) live under
the ``migration`` key.  Credentials may also come from the environment so
that they do not have to be written to disk.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from wp2contentful.utils.errors import ConfigurationError

DEFAULT_CONFIG_FILE = "config/migration_config.json"
TOKEN_PREFIX = "CFPAT-"
WORDPRESS_MAX_PAGE_SIZE = 100

# Environment variable -> (section, key)
_ENV_OVERRIDES = {
    "WORDPRESS_ENDPOINT": ("wordpress", "endpoint"),
    "CONTENTFUL_ACCESS_TOKEN": ("contentful", "access_token"),
    "CONTENTFUL_SPACE_ID": ("contentful", "space_id"),
    "CONTENTFUL_ENVIRONMENT": ("contentful", "environment"),
    "CONTENTFUL_CONTENT_TYPE": ("contentful", "content_type"),
}


class WordPressSettings(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    endpoint: str = Field(..., min_length=1)
    import_post_count: int = Field(2, ge=1)
    aux_fetch_limit: int = Field(500, ge=1)
    page_size: int = Field(WORDPRESS_MAX_PAGE_SIZE, ge=1, le=WORDPRESS_MAX_PAGE_SIZE)
    timeout: Optional[float] = 30.0

    @field_validator("endpoint")
    @classmethod
    def _trailing_slash(cls, v: str) -> str:
        return v if v.endswith("/") else v + "/"


class ContentfulSettings(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    access_token: str = Field(..., min_length=1)
    space_id: str = Field(..., min_length=1)
    environment: str = "master"
    content_type: str = "blogPost"
    content_format: Literal["richtext", "markdown"] = "richtext"
    locale: str = "en-US"
    base_url: str = "https://api.contentful.com"
    timeout: Optional[float] = 60.0

    @field_validator("access_token")
    @classmethod
    def _token_format(cls, v: str) -> str:
        if not v.startswith(TOKEN_PREFIX):
            raise ValueError(f"Invalid access token format, must start with {TOKEN_PREFIX}")
        return v

    @field_validator("base_url")
    @classmethod
    def _strip_base_url(cls, v: str) -> str:
        return v.rstrip("/")


class MigrationSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    dry_run: bool = False
    max_workers: int = Field(4, ge=1)
    requests_per_minute: int = Field(420, ge=1)
    max_retries: int = Field(5, ge=1)
    dedupe_assets: bool = False
    snapshot_path: str = "reports/wp_posts.json"
    report_dir: str = "reports/migration"
    log_file: Optional[str] = "reports/migration/migration.log"
    log_level: str = "INFO"
    processing_poll_interval: float = Field(1.0, ge=0)
    processing_max_polls: int = Field(10, ge=1)


class MigrationConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    wordpress: WordPressSettings
    contentful: ContentfulSettings
    migration: MigrationSettings = Field(default_factory=MigrationSettings)


def _apply_env_overrides(raw: Dict[str, Any], environ: Dict[str, str]) -> Dict[str, Any]:
    for var, (section, key) in _ENV_OVERRIDES.items():
        value = environ.get(var)
        if value:
            raw.setdefault(section, {})[key] = value
    return raw


def _format_validation_error(exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()))
        problems.append(f"{location}: {err.get('msg')}")
    return "; ".join(problems)


def build_config(raw: Dict[str, Any], environ: Optional[Dict[str, str]] = None) -> MigrationConfig:
    """
    Validate a configuration dictionary, applying environment overrides.

    :raises ConfigurationError: if a required value is missing or invalid.
    """
    data = json.loads(json.dumps(raw or {}))
    data.setdefault("wordpress", {})
    data.setdefault("contentful", {})
    data = _apply_env_overrides(data, dict(os.environ) if environ is None else environ)
    try:
        return MigrationConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {_format_validation_error(e)}") from e


def load_config(path: str = DEFAULT_CONFIG_FILE, environ: Optional[Dict[str, str]] = None) -> MigrationConfig:
    """
    Load and validate the JSON configuration at ``path``.

    A missing file is not an error by itself: every required value may be
    supplied through the environment instead.
    """
    raw: Dict[str, Any] = {}
    if path and os.path.exists(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Configuration in {path} must be a JSON object")
    return build_config(raw, environ)
