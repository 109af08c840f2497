from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_APP_NAME = "glassrental-service"


class ServiceSettings(BaseSettings):
    """Runtime settings for the rental service, read from ``SERVICE_*`` variables and ``.env`` files."""

    app_name: str = Field(default=DEFAULT_APP_NAME)
    environment: Literal["local", "dev", "staging", "prod"] = Field(default="local")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    service_host: str = Field(default="0.0.0.0")
    service_port: int = Field(default=8000)

    # Observability
    enable_metrics: bool = Field(default=True)
    enable_tracing: bool = Field(default=False)
    tracing_endpoint: str | None = Field(default=None)
    tracing_protocol: Literal["http/protobuf", "grpc"] = Field(default="http/protobuf")
    tracing_insecure: bool = Field(default=True)
    tracing_sample_rate: float = Field(default=1.0, ge=0.0, le=1.0)

    # Storage
    database_url: str | None = Field(default=None)
    create_schema_on_startup: bool = Field(default=True)
    operation_timeout_seconds: float = Field(default=10.0, gt=0.0)

    # Stock accounting
    default_low_stock_threshold: int = Field(default=10, ge=0)

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"), env_prefix="SERVICE_", extra="ignore"
    )
