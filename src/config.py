from enum import Enum
from pathlib import Path
from functools import lru_cache
from typing import Optional
from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent


#  Working modes
class AppEnvironment(str, Enum):
    """Working modes"""
    DEV = "development"
    PROD = "production"
    TEST = "testing"


#  Database config
class DatabaseConfig(BaseModel):
    """Database config"""
    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    user: str = Field(default="postgres", description="Database user")

    password: SecretStr = Field(default=SecretStr(""), description="Database password")
    name: str = Field(default="postgres", description="Database name")

    @property
    def connection_string(self) -> str:
        """DSN for asyncpg"""
        return f"postgresql://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.name}"


#  Diagnostics API config
class ApiConfig(BaseModel):
    """Diagnostics HTTP API config (development only)"""
    host: str = Field(default="127.0.0.1", description="IP address to bind")
    port: int = Field(default=8000, description="HTTP port")


#  Development session
class DevSessionConfig(BaseModel):
    """
    Development user for the in-memory session provider.
    Leave user_id empty to boot unauthenticated.
    """
    user_id: Optional[str] = Field(default=None, description="Auth user id")
    email: str = Field(default="", description="Auth user email")


#  Main Settings
class Settings(BaseSettings):
    """
    Main Settings class.
    Reads configuration from .env file or environment variables.
    """
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore"
    )

    # Unset means production: development tooling must be asked for explicitly
    env: AppEnvironment = Field(default=AppEnvironment.PROD, alias="APP_ENV")

    # Compose configs
    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    dev_session: DevSessionConfig = Field(default_factory=DevSessionConfig)

    @property
    def is_development(self) -> bool:
        return self.env == AppEnvironment.DEV


@lru_cache
def get_settings() -> Settings:
    """
    Creates and returns a (cached) instance of settings.
    Used for Dependency Injection.
    """
    return Settings()
