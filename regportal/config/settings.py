"""Application configuration settings."""
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database configuration."""
    
    url: str = Field(
        default="sqlite+aiosqlite:///./registration.db",
        validation_alias="DATABASE_URL"
    )
    echo: bool = Field(default=False, validation_alias="DATABASE_ECHO")
    pool_size: int = Field(default=10, validation_alias="DATABASE_POOL_SIZE")
    max_overflow: int = Field(default=20, validation_alias="DATABASE_MAX_OVERFLOW")
    
    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


class AuthSettings(BaseSettings):
    """Authentication configuration."""
    
    secret_key: str = Field(
        default="your-secret-key-change-in-production",
        validation_alias="AUTH_SECRET_KEY"
    )
    algorithm: str = Field(default="HS256", validation_alias="AUTH_ALGORITHM")
    access_token_expire_minutes: int = Field(default=60, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES")
    remember_me_expire_days: int = Field(default=30, validation_alias="REMEMBER_ME_EXPIRE_DAYS")
    reset_token_expire_minutes: int = Field(default=30, validation_alias="RESET_TOKEN_EXPIRE_MINUTES")
    bcrypt_rounds: int = Field(default=12, validation_alias="BCRYPT_ROUNDS")
    
    # Hand the reset token back to the caller instead of an out-of-band channel
    reset_token_in_response: bool = Field(default=True, validation_alias="RESET_TOKEN_IN_RESPONSE")
    minimum_age: int = Field(default=18, validation_alias="MINIMUM_AGE")


class APISettings(BaseSettings):
    """API configuration."""
    
    title: str = "Registration Portal"
    description: str = "User registration and authentication service"
    version: str = "0.1.0"
    host: str = Field(default="0.0.0.0", validation_alias="API_HOST")
    port: int = Field(default=3000, validation_alias="API_PORT")
    reload: bool = Field(default=False, validation_alias="API_RELOAD")
    workers: int = Field(default=1, validation_alias="API_WORKERS")
    
    # Rate limiting
    rate_limit_enabled: bool = Field(default=True, validation_alias="RATE_LIMIT_ENABLED")
    rate_limit_requests: int = Field(default=100, validation_alias="RATE_LIMIT_REQUESTS")
    rate_limit_window: int = Field(default=60, validation_alias="RATE_LIMIT_WINDOW")  # seconds
    
    # CORS
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        validation_alias="CORS_ORIGINS"
    )


class MonitoringSettings(BaseSettings):
    """Monitoring and observability configuration."""
    
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")


class Settings(BaseSettings):
    """Main application settings."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
    
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    debug: bool = Field(default=False, validation_alias="DEBUG")
    
    # Sub-configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    api: APISettings = Field(default_factory=APISettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)


# Global settings instance
settings = Settings()
