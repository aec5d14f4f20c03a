"""Service settings, read from the environment and an optional .env file"""
from functools import lru_cache
from typing import List
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # MongoDB
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "helpdesk_dev"
    # Multi-document transactions need a replica set; off by default for a standalone dev server
    mongo_transactions: bool = False
    mongo_timeout_ms: int = 5000

    # Identity provider (JWT shared secret, "sub" claim is the profile id)
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_audience: str = ""
    jwt_leeway_seconds: int = 0

    # Azure OpenAI (preferred when configured)
    azure_openai_endpoint: str = ""
    azure_openai_api_key: str = ""
    azure_openai_deployment: str = "gpt-4o-mini"
    azure_openai_api_version: str = "2024-02-01"

    # OpenAI (used when no Azure endpoint is configured)
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    routing_advisor_timeout_seconds: float = 15.0

    # Attachments
    attachments_max_mb: int = 50
    attachments_base_path: str = "./storage/attachments"
    attachments_public_url: str = "http://localhost:8000/files"

    # Logging
    logs_path: str = "./logs"
    log_level: str = "INFO"
    # "json" or "text" (console only; files are always JSON)
    log_format: str = "json"
    log_max_mb: int = 10
    log_backup_count: int = 5

    # Server (run.py defaults)
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    # CORS - set to "*" to allow all origins (simpler for internal/VM deployment)
    cors_origins: str = "*"

    # Departments
    default_department_color: str = "#6366f1"

    # SLA: fraction of the resolution window after which a ticket is "at risk"
    sla_at_risk_ratio: float = 0.75

    # Environment
    environment: str = "development"
    debug: bool = True

    # Bootstrap admin profile (identity provider user id), used by scripts/seed_data.py
    bootstrap_admin_id: str = ""
    bootstrap_admin_name: str = "Administrator"

    @field_validator("sla_at_risk_ratio")
    @classmethod
    def _ratio_in_range(cls, value: float) -> float:
        if not 0 < value <= 1:
            raise ValueError("sla_at_risk_ratio must be in (0, 1]")
        return value

    @field_validator("log_format")
    @classmethod
    def _known_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return value

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def attachments_max_bytes(self) -> int:
        """Max attachment size in bytes"""
        return self.attachments_max_mb * 1024 * 1024

    @property
    def openai_configured(self) -> bool:
        """True when either Azure OpenAI or OpenAI credentials are present"""
        return bool(
            (self.azure_openai_endpoint and self.azure_openai_api_key)
            or self.openai_api_key
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
