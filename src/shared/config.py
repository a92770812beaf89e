# Configuration loader with environment variable support
# YAML file (config/<ENV>.yaml) for behaviour, environment for credentials

import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import CaseFileBaseModel

logger = logging.getLogger(__name__)

DEFAULT_PROTOCOL_VERSION = "2025-06-18"


class AppConfig(BaseModel):
    name: str = "casefile-mcp"
    version: str = "1.0.0"
    log_level: str = "INFO"
    environment: str = "development"


class ServerConfig(BaseModel):
    protocol_version: str = DEFAULT_PROTOCOL_VERSION
    sse_ping_interval_seconds: float = Field(default=25.0, gt=0)
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])


class GatewayConfig(BaseModel):
    """Upstream PostgREST gateway addressing (credentials come from Settings)."""

    rest_path: str = "/rest/v1"
    timeout_seconds: float = Field(default=15.0, gt=0)
    vector_search_function: str = "vector_search"
    document_table: str = "vector_embeddings"

    @field_validator("rest_path")
    @classmethod
    def _normalize_rest_path(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith("/"):
            value = "/" + value
        return value.rstrip("/")


class SearchConfig(BaseModel):
    vector_threshold: float = Field(default=0.7, ge=0.0, le=1.0)


class ToolsConfig(BaseModel):
    # Empty list means every registered tool is exposed
    enabled: List[str] = Field(default_factory=list)

    @field_validator("enabled")
    @classmethod
    def _strip_names(cls, value: List[str]) -> List[str]:
        return [name.strip() for name in value if name and name.strip()]


class Config(CaseFileBaseModel):
    """Main configuration model"""

    app: AppConfig = Field(default_factory=AppConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)


class Settings(BaseSettings):
    """Environment-based settings"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="development", alias="ENV")
    config_path: Optional[str] = Field(default=None, alias="CONFIG_PATH")

    # Upstream gateway (Supabase PostgREST)
    supabase_url: Optional[str] = Field(default=None, alias="SUPABASE_URL")
    supabase_service_role_key: Optional[str] = Field(
        default=None, alias="SUPABASE_SERVICE_ROLE_KEY"
    )

    # OpenTelemetry
    otel_exporter_otlp_endpoint: Optional[str] = Field(
        default=None, alias="OTEL_EXPORTER_OTLP_ENDPOINT"
    )
    otel_service_name: str = Field(default="casefile-mcp", alias="OTEL_SERVICE_NAME")

    # Logging
    log_level: Optional[str] = Field(default=None, alias="LOG_LEVEL")

    @property
    def gateway_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)


def load_config() -> tuple[Config, Settings]:
    """
    Load configuration from YAML file and environment variables.

    Returns:
        tuple: (Config, Settings) - YAML config and environment settings

    Raises:
        FileNotFoundError: If config file not found
    """
    settings = Settings()

    if settings.config_path:
        config_path = Path(settings.config_path)
    else:
        config_path = (
            Path(__file__).parent.parent.parent / "config" / f"{settings.env}.yaml"
        )

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger.info(f"Loading configuration from: {config_path}")

    with open(config_path, "r") as f:
        config_dict = yaml.safe_load(f) or {}

    config = Config(**config_dict)
    if settings.log_level:
        config.app.log_level = settings.log_level

    validate_config_at_startup(config, settings)

    return config, settings


def validate_config_at_startup(config: Config, settings: Settings) -> None:
    """
    Log the effective configuration and flag a missing gateway credential.

    A missing credential is not fatal: tools answer with a "not configured"
    error instead.
    """
    logger.info(
        "Configuration loaded: app=%s version=%s environment=%s protocol=%s",
        config.app.name,
        config.app.version,
        settings.env,
        config.server.protocol_version,
    )

    if not settings.supabase_url:
        logger.warning("SUPABASE_URL is not set; gateway tools will report not configured")
    if not settings.supabase_service_role_key:
        logger.warning(
            "SUPABASE_SERVICE_ROLE_KEY is not set; gateway tools will report not configured"
        )

    if config.tools.enabled:
        logger.info(f"Tool subset enabled: {config.tools.enabled}")

    logger.info("Configuration validation successful")


# Global config instances (loaded once at startup)
_config: Optional[Config] = None
_settings: Optional[Settings] = None


def get_config() -> Config:
    """Get the global Config instance"""
    global _config, _settings
    if _config is None:
        _config, _settings = load_config()
    return _config


def get_settings() -> Settings:
    """Get the global Settings instance"""
    global _config, _settings
    if _settings is None:
        _config, _settings = load_config()
    return _settings


def init_config() -> tuple[Config, Settings]:
    """Initialize and cache global config instances"""
    global _config, _settings
    _config, _settings = load_config()
    return _config, _settings


def reload_config() -> tuple[Config, Settings]:
    """Force reload of config/settings from disk and environment."""
    global _config, _settings
    _config, _settings = load_config()
    return _config, _settings
