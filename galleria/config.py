import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env early so env vars are available for YAML interpolation
load_dotenv(Path.cwd() / ".env")

# Pattern to match $VAR_NAME environment variable references
ENV_VAR_PATTERN = re.compile(r"\$([A-Z_][A-Z0-9_]*)")

MAX_UPLOAD_SIZE = 100 * 1024 * 1024
IMAGE_EXTENSIONS = [".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp"]


def interpolate_env_vars(value):
    """Recursively replace $VAR_NAME with os.environ values."""
    if isinstance(value, str):

        def replace(match):
            var = match.group(1)
            val = os.environ.get(var)
            if val is None:
                raise ValueError(f"Environment variable ${var} not set")
            return val

        return ENV_VAR_PATTERN.sub(replace, value)
    elif isinstance(value, dict):
        return {k: interpolate_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [interpolate_env_vars(item) for item in value]
    return value


def get_config_path() -> Path:
    """Return the app.yaml path, honouring GALLERIA_CONFIG when set."""
    override = os.environ.get("GALLERIA_CONFIG")
    if override:
        return Path(override)
    return Path.cwd() / "app.yaml"


def load_app_config(config_path: Path | None = None) -> dict:
    """Load and parse app.yaml with environment variable interpolation."""
    config_path = config_path or get_config_path()

    if not config_path.exists():
        raise FileNotFoundError(f"app.yaml not found at {config_path}")

    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}

    return interpolate_env_vars(config)


class DatabaseConfig(BaseModel):
    """Database connection configuration."""

    url: str = "sqlite+aiosqlite:///./galleria.db"
    pool_size: int = 5
    pool_overflow: int = 10
    pool_timeout: int = 30
    pool_pre_ping: bool = True
    echo: bool = False
    # Create tables on startup instead of running migrations (dev/test only)
    create_all: bool = False


class AuthConfig(BaseModel):
    """Token and password hashing configuration."""

    token_ttl: int = 24 * 60 * 60
    bcrypt_rounds: int = 12


class S3Config(BaseModel):
    """S3-compatible bucket configuration."""

    bucket: str = ""
    region: str = "us-east-1"
    endpoint_url: str | None = None
    access_key_id: str | None = None
    secret_access_key: str | None = None
    prefix: str = ""
    acl: str | None = None
    public_url: str | None = None
    presign_ttl: int = 3600


class StoreConfig(BaseModel):
    """A single named object store."""

    backend: str = "local"
    local_path: str = "./storage"
    s3: S3Config = S3Config()


class StorageConfig(BaseModel):
    """Named object stores; uploads go to ``default``."""

    default: str = "default"
    stores: dict[str, StoreConfig] = {"default": StoreConfig()}

    @field_validator("stores")
    @classmethod
    def _require_stores(cls, value: dict[str, StoreConfig]) -> dict[str, StoreConfig]:
        if not value:
            raise ValueError("At least one storage store must be configured")
        return value


class UploadConfig(BaseModel):
    """Limits applied to incoming image uploads."""

    max_size: int = MAX_UPLOAD_SIZE
    allowed_extensions: list[str] = IMAGE_EXTENSIONS
    folder: str = "images"


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s %(message)s"


class LogfireConfig(BaseModel):
    """Optional Pydantic Logfire tracing."""

    enabled: bool = False
    service_name: str = "galleria"
    environment: str | None = None
    sample_rate: float = 1.0
    console: bool = False


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Application
    debug: bool = False
    secret_key: str

    db: DatabaseConfig = DatabaseConfig()
    auth: AuthConfig = AuthConfig()
    storage: StorageConfig = StorageConfig()
    uploads: UploadConfig = UploadConfig()
    logging: LoggingConfig = LoggingConfig()
    logfire: LogfireConfig = LogfireConfig()

    @field_validator("secret_key")
    @classmethod
    def _require_secret(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("SECRET_KEY must be set to a non-empty value")
        return value


_YAML_SECTIONS = {
    "db": DatabaseConfig,
    "auth": AuthConfig,
    "storage": StorageConfig,
    "uploads": UploadConfig,
    "logging": LoggingConfig,
    "logfire": LogfireConfig,
}


def build_settings(config_path: Path | None = None) -> Settings:
    """Load settings from .env/environment and merge the app.yaml sections."""
    base_settings = Settings()

    try:
        app_config = load_app_config(config_path)
    except FileNotFoundError:
        return base_settings

    updates = {
        name: model(**app_config[name])
        for name, model in _YAML_SECTIONS.items()
        if name in app_config
    }
    if "debug" in app_config:
        updates["debug"] = bool(app_config["debug"])

    if updates:
        return base_settings.model_copy(update=updates)

    return base_settings


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, built once at startup."""
    return build_settings()
