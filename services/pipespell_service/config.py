"""
Configuration module for the Pipespell Service.

This module defines the settings for the Pipespell Service, including the
HTTP surface, the external spell-check engine invocation and the defaults
that the check API applies when a request leaves them out.
"""

from __future__ import annotations

from dotenv import find_dotenv, load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from services.libs.pipespell_service_libs.config_enums import Environment

# Load .env file from repository root, regardless of current working directory
load_dotenv(find_dotenv(".env"))


class Settings(BaseSettings):
    """
    Configuration settings for the Pipespell Service.

    These settings can be overridden via environment variables prefixed with
    PIPESPELL_SERVICE_.
    """

    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: Environment = Field(
        default=Environment.DEVELOPMENT,
        validation_alias="ENVIRONMENT",  # Read from global ENVIRONMENT var
        description="Runtime environment for the service",
    )
    SERVICE_NAME: str = "pipespell-service"
    VERSION: str = "1.0.0"
    HTTP_PORT: int = 8090
    HOST: str = "0.0.0.0"

    # Engine invocation
    ENGINE_COMMAND: str = Field(
        default="aspell", description="Executable of the pipe-mode spell-check engine"
    )
    ENGINE_EXTRA_ARGS: list[str] = Field(
        default_factory=list,
        description="Additional arguments appended after --lang and the pipe-mode flag",
    )
    ENGINE_ENVIRONMENT: dict[str, str] | None = Field(
        default=None,
        description="Exact environment for the engine process; inherited when unset",
    )
    ENGINE_BANNER_MARKER: str = Field(
        default="@", description="Prefix the engine banner must start with"
    )
    ENGINE_PRODUCT_TOKEN: str = Field(
        default="Aspell", description="Product name the engine banner must contain"
    )

    # Engine deadlines
    ENGINE_STARTUP_TIMEOUT_SECONDS: float = Field(
        default=10.0, description="Deadline for the engine to print its banner"
    )
    ENGINE_READ_TIMEOUT_SECONDS: float = Field(
        default=10.0, description="Deadline for each reply line from the engine"
    )
    ENGINE_TERMINATE_GRACE_SECONDS: float = Field(
        default=2.0, description="Time allowed after SIGTERM before the engine is killed"
    )

    # Check API defaults
    DEFAULT_LANGUAGE: str = "en"
    DEFAULT_CHARSET: str = "ISO-8859-1"
    SUPPORTED_LANGUAGES: list[str] = Field(
        default_factory=list,
        description="Languages accepted from Accept-Language negotiation; any when empty",
    )
    MAX_TEXT_LENGTH: int = Field(
        default=100_000, description="Maximum number of characters accepted per check"
    )

    # Worker offloading
    MAX_CONCURRENT_CHECKS: int = Field(
        default=4, description="Worker threads available for blocking engine checks"
    )
    CHECK_TIMEOUT_SECONDS: float = Field(
        default=30.0, description="Deadline for one complete check, spawn included"
    )

    USE_STUB_ENGINE: bool = Field(
        default=False, description="Serve checks from the in-memory stub engine"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_prefix="PIPESPELL_SERVICE_",
    )


# Create a single instance for the application to use
settings = Settings()
