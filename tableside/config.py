from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    database_url: str = "sqlite:///./tableside.db"
    redis_url: str = "redis://localhost:6379/0"
    redis_fanout: bool = False
    secret_key: str = "change-in-production"
    token_ttl_minutes: int = 60 * 12
    table_session_max_age: int = 86400  # one day, same as the printed QR session
    super_admin_email: str = "superadmin@tableside.local"
    super_admin_password_hash: Optional[str] = None
    public_base_url: str = "http://localhost:8000"
    media_dir: str = "media"
    debug: bool = True

    class Config:
        env_file = ".env"

settings = Settings()
