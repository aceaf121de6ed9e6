from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1024 * 1024


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    backend_base_url: str = "http://localhost:8000"
    upload_path: str = "/api/documents/upload-analyze"
    health_path: str = "/api/health"
    verify_ssl: bool = True

    request_timeout_seconds: float = 60.0
    upload_timeout_seconds: float = 300.0
    wake_notice_seconds: float = 2.0
    max_retries: int = 3
    base_backoff_seconds: float = 1.0
    backoff_multiplier: float = 2.0

    target_size_bytes: int = 5 * MIB
    max_combined_bytes: int = 10 * MIB

    default_confidence_score: float | None = 0.5

    network_probe: str = "system"
    network_online: bool | None = None
    network_effective_type: str | None = None

    subject_id: str | None = None
    bearer_token: str | None = None
