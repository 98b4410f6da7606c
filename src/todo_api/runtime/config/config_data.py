"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

import os
from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field, computed_field


class CORSConfig(BaseModel):
    """CORS configuration for the application."""

    origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"]
    )
    allow_credentials: bool = False
    allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    )
    allow_headers: list[str] = Field(default=["Authorization", "Content-Type"])


class RateLimiterConfig(BaseModel):
    """Rate limiter configuration model (applies to the auth endpoints)."""

    requests: int = Field(
        default=20, description="Number of requests allowed per window"
    )
    window_ms: int = Field(default=60000, description="Time window in milliseconds")
    enabled: bool = Field(default=True, description="Enable rate limiting")
    per_endpoint: bool = Field(
        default=True, description="Apply rate limiting per endpoint"
    )
    per_method: bool = Field(
        default=True, description="Apply rate limiting per HTTP method"
    )


class JWTConfig(BaseModel):
    """Token issuing and validation configuration."""

    algorithm: Literal["HS256", "HS384", "HS512"] = Field(
        default="HS256", description="Symmetric algorithm used to sign tokens"
    )
    gen_issuer: str = Field(
        default="todo-api", description="Issuer name to use when generating tokens"
    )
    expires_in_seconds: int = Field(
        default=7 * 24 * 3600, description="Token lifetime in seconds (7 days)"
    )
    clock_skew: int = Field(default=0, description="Clock skew tolerance in seconds")


class SecurityConfig(BaseModel):
    """Password hashing configuration."""

    bcrypt_rounds: int = Field(
        default=10, ge=4, le=31, description="bcrypt cost factor (log2 rounds)"
    )
    min_secret_length: int = Field(
        default=32, description="Signing secrets shorter than this are logged as weak"
    )


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="json", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class DatabaseConfig(BaseModel):
    """Database configuration model."""

    url: str = Field(
        default="sqlite:///./todos.db",
        description="Database connection URL",
    )
    echo: bool = Field(default=False, description="Echo SQL statements")
    pool_size: int = Field(default=10, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")
    connect_timeout: int = Field(
        default=10, description="Connect / lock timeout in seconds"
    )
    password_env_var: str | None = Field(
        default=None,
        description="Environment variable name containing database password",
    )
    password_file: str | None = Field(
        default=None,
        description="Path to file containing database password",
    )

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @computed_field
    @property
    def password(self) -> str | None:
        """Resolve the database password from a secrets file or environment variable.

        Falls back to whatever password is embedded in the URL.
        """
        if self.password_file:
            try:
                with open(self.password_file) as f:
                    return f.read().strip()
            except OSError as e:
                raise ValueError("Failed to read database password from file.") from e
        if self.password_env_var:
            password = os.getenv(self.password_env_var)
            if not password:
                raise ValueError(
                    f"Environment variable {self.password_env_var} not set"
                )
            return password

        from sqlalchemy.engine import make_url

        return make_url(self.url).password

    @computed_field
    @property
    def connection_string(self) -> str:
        """Construct the database connection string with the resolved password."""
        from sqlalchemy.engine import make_url

        if self.is_sqlite:
            return self.url

        base_url = make_url(self.url)
        resolved_password = self.password
        if resolved_password and resolved_password != base_url.password:
            if base_url.password:
                logger.warning(
                    "Database password from secrets does not match the one in the URL. "
                    "Using the password from secrets."
                )
            base_url = base_url.set(password=resolved_password)
        return base_url.render_as_string(hide_password=False)


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="127.0.0.1", description="Application host")
    port: int = Field(default=3000, description="Application port")
    session_signing_secret: str | None = Field(
        default=None, description="Secret for signing identity tokens"
    )
    cors: CORSConfig = Field(
        default_factory=CORSConfig, description="CORS configuration"
    )


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    rate_limiter: RateLimiterConfig = Field(
        default_factory=RateLimiterConfig, description="Rate limiter configuration"
    )
    jwt: JWTConfig = Field(
        default_factory=JWTConfig, description="Token configuration"
    )
    security: SecurityConfig = Field(
        default_factory=SecurityConfig, description="Password hashing configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    app: AppConfig = Field(
        default_factory=AppConfig,
        description="Application configuration",
    )
