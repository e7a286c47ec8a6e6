"""
Application configuration.
All settings are loaded from environment variables.
Use .env.example as a reference for required variables.
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    IMPORTANT: Credentials have no defaults - they MUST be set in .env file.
    """

    # ===========================================
    # APPLICATION
    # ===========================================
    app_env: str = "local"
    site_name: str = "AmourScans"
    frontend_base_url: str = "http://localhost:5173"
    # Comma-separated. Empty = default list in app.main.
    cors_origins: str = ""
    # Trusted proxy IPs (comma-separated). Used for X-Forwarded-For in production.
    trusted_proxy_ips: str = ""

    # ===========================================
    # DATABASE
    # ===========================================
    database_url: str  # Required, no default
    database_echo: bool = False

    # ===========================================
    # REDIS & CELERY
    # ===========================================
    redis_url: str  # Required, no default
    celery_broker_url: str  # Required, no default
    celery_result_backend: str  # Required, no default
    celery_task_retry_delay: int = 5
    celery_task_max_retries: int = 3

    # ===========================================
    # READER SESSIONS & CSRF
    # ===========================================
    session_secret: str  # Required, no default
    session_cookie_name: str = "reader_session"
    session_ttl: int = 60 * 60 * 24 * 14  # 14 days
    session_cookie_secure: bool = False  # Set True in production (HTTPS)
    session_cookie_samesite: str = "lax"
    csrf_enabled: bool = True
    csrf_cookie_name: str = "csrf_token"
    csrf_header_name: str = "X-CSRF-Token"
    csrf_token_ttl: int = 60 * 60 * 12  # 12 hours

    # ===========================================
    # ADMIN API
    # ===========================================
    admin_api_key: str | None = None  # Admin API is disabled when unset

    # ===========================================
    # PAYWALL
    # ===========================================
    # Default price for newly created paid chapters (currency units)
    default_unlock_cost: int = 30
    # Unlock attempts allowed per user within the window
    unlock_rate_limit_attempts: int = 10
    unlock_rate_limit_window_seconds: int = 60

    # ===========================================
    # STORAGE
    # ===========================================
    uploads_base_dir: str = "./public/uploads"
    upload_folders: str = "covers,chapters"
    max_upload_size_mb: int = 10
    allowed_image_extensions: str = ".jpg,.jpeg,.png,.webp,.gif"

    # ===========================================
    # EMAIL / SMTP
    # ===========================================
    # SMTP_HOST unset = emails are logged instead of sent
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    smtp_use_ssl: bool = False
    smtp_timeout: float = 10.0
    email_from_address: str = "no-reply@amourscans.local"
    email_from_name: str = "AmourScans"

    # ===========================================
    # LOGGING
    # ===========================================
    log_level: str = "INFO"
    request_id_header: str = "X-Request-Id"
    log_file: str | None = None
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("allowed_image_extensions")
    @classmethod
    def parse_extensions(cls, v: str) -> str:
        """Validate extensions format."""
        return v.lower().strip()

    @property
    def allowed_extensions_set(self) -> set[str]:
        """Get allowed extensions as a set."""
        return {ext.strip() for ext in self.allowed_image_extensions.split(",") if ext.strip()}

    @property
    def upload_folders_set(self) -> set[str]:
        return {f.strip() for f in self.upload_folders.split(",") if f.strip()}

    @property
    def trusted_proxy_ips_set(self) -> set[str]:
        """Get trusted proxy IPs as a set."""
        return {ip.strip() for ip in self.trusted_proxy_ips.split(",") if ip.strip()}

    @field_validator("session_secret")
    @classmethod
    def validate_session_secret(cls, v: str) -> str:
        """Ensure session secret is reasonably secure."""
        if len(v) < 16:
            raise ValueError("session_secret must be at least 16 characters")
        if v in ("changeme", "secret", "password", "admin"):
            raise ValueError("session_secret is too weak, please change it")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
