from pydantic import Field
from pydantic_settings import BaseSettings
from src.config import get_settings, Settings

class CoreConfig(BaseSettings):
    """
    Configuration for the session bootstrap and section loading core.
    """
    INIT_TIMEOUT_SEC: float = Field(default=10.0, description="Upper bound for loading all admin sections")
    REQUEST_TIMEOUT_SEC: float = Field(default=15.0, description="Timeout for a single session/profile/permission call")
    PROFILE_CACHE_TTL_SEC: float = Field(default=1800.0, description="How long a cached profile counts as fresh")
    SECTION_ROW_LIMIT: int = Field(default=1000, description="Maximum rows fetched per section")
    DIAGNOSTICS_ROWS: int = Field(default=10, description="History rows shown by the diagnostics overlay")

    @property
    def global_settings(self) -> Settings:
        """
        Access to the global project settings.
        """
        return get_settings()
