# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

"""Application configuration management"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore")

    current_dir: Path = Path(__file__).parent.resolve()

    # Application
    app_name: str = "Pipeline Import Service"
    version: str = "0.1.0"
    summary: str = "Pipeline import server"
    description: str = (
        "Ingests declarative pipeline documents written in YAML or JSON, previews the parsed pipeline "
        "and imports it into a project."
    )
    openapi_url: str = "/api/openapi.json"
    debug: bool = Field(default=False, alias="DEBUG")
    log_format: str = "%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s"
    environment: Literal["dev", "prod"] = "dev"

    # Server
    host: str = Field(default="localhost", alias="HOST")
    port: int = Field(default=9100, alias="PORT")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000, http://localhost:9100",
        alias="CORS_ORIGINS",
    )

    # Database
    db_data_dir: Path = Field(default=current_dir.parent / ".data", alias="DB_DATA_DIR")
    db_filename: str = "pipelines.db"
    database_url_override: str | None = Field(default=None, alias="DATABASE_URL")
    db_echo: bool = Field(default=False, alias="DB_ECHO")

    # Remote documents
    remote_read_timeout: float = Field(default=10.0, gt=0, alias="REMOTE_READ_TIMEOUT")

    # Request context
    consumer_header: str = Field(default="X-Consumer", alias="CONSUMER_HEADER")
    anonymous_consumer: str = "anonymous"
    default_language: str = Field(default="en", alias="DEFAULT_LANGUAGE")

    # Command line client
    server_url: str = Field(default="http://localhost:9100", alias="SERVER_URL")

    @property
    def database_url(self) -> str:
        """Database connection URL"""
        if self.database_url_override:
            return self.database_url_override
        return f"sqlite:///{self.db_data_dir / self.db_filename}"

    @property
    def cors_allowed_origins(self) -> list[str]:
        """Parsed list of allowed CORS origins."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings"""
    return Settings()
