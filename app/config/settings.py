from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    store_timeout_seconds: float = 10.0

    # Session tokens
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 60 * 24 * 7  # 7 days
    bcrypt_rounds: int = 12

    # External identity (Google ID tokens)
    google_client_id: Optional[str] = None
    identity_timeout_seconds: float = 10.0

    # App
    app_name: str = "studysync-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "200 per 15 minutes"  # slowapi format
    auth_rate_limit: str = "20 per 15 minutes"
    rate_limit_enabled: bool = True

    # Chat / notes
    messages_default_limit: int = 50
    messages_max_limit: int = 100
    note_history_limit: int = 10
    note_max_content_length: int = 2 * 1024 * 1024

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
