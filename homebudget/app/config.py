from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    # Database settings
    database_url: str = "sqlite:///./homebudget.db"

    # Dashboard results are served from cache for this long
    dashboard_cache_ttl_seconds: int = 300

    # Supabase Realtime settings (broadcasting is skipped when unset)
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None
    realtime_timeout_seconds: float = 2.0

    # Invitations
    invitation_expiry_days: int = 7
    frontend_url: str = "http://localhost:3000"

    log_level: str = "INFO"

    class Config:
        env_file = ".env"

@lru_cache()
def get_settings():
    return Settings()
