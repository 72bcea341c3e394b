# taskhub/config/settings.py
# Application settings loaded from the environment / .env

from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

DEFAULT_JWT_SECRET = "change-me-in-production"


class Settings(BaseSettings):
    """Runtime configuration for the TaskHub API"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    environment: str = Field(default="development", alias="APP_ENV")

    # Database
    database_url: str = Field(default="sqlite:///./taskhub.db", alias="DATABASE_URL")
    database_sslmode: Optional[str] = Field(default=None, alias="DATABASE_SSLMODE")
    database_echo: bool = Field(default=False, alias="DATABASE_ECHO")

    # Tokens
    jwt_secret: str = Field(default=DEFAULT_JWT_SECRET, alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_expire_minutes: int = Field(default=60 * 24 * 7, alias="JWT_EXPIRE_MINUTES")
    jwt_issuer: str = Field(default="taskhub-api", alias="JWT_ISSUER")
    jwt_audience: str = Field(default="taskhub-client", alias="JWT_AUDIENCE")

    # Passwords
    bcrypt_rounds: int = Field(default=12, alias="BCRYPT_ROUNDS")

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Comma separated list of allowed frontend origins
    cors_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        alias="CORS_ORIGINS",
    )

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def check_secrets(self) -> "Settings":
        if self.is_production and self.jwt_secret == DEFAULT_JWT_SECRET:
            raise ValueError("JWT_SECRET must be set in production")
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31")
        return self

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def allowed_origins(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Build the settings once per process"""
    return Settings()
