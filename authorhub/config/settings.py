from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for admin operations like role changes

    # AWS (will read from uppercase env vars automatically; falls back to the aws_settings table)
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "us-east-1"
    s3_bucket_name: Optional[str] = None

    # Resend (transactional email)
    resend_api_key: Optional[str] = None
    resend_api_url: str = "https://api.resend.com/emails"
    email_from: str = "AuthorHub Security <security@authorhub.app>"

    # Storage
    avatars_bucket: str = "avatars"
    avatar_max_bytes: int = 5 * 1024 * 1024

    # Deployment health monitoring
    health_monitor_enabled: bool = False
    health_poll_interval_seconds: float = 30.0
    http_probe_timeout_seconds: float = 8.0
    slow_response_ms: float = 2000.0
    install_grace_minutes: float = 5.0

    # Security monitoring
    security_window_hours: int = 24

    # App
    app_name: str = "authorhub-admin"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

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
