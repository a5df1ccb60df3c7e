"""Application configuration using Pydantic settings."""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 5000
    environment: str = "development"
    log_level: str = ""  # Overrides the environment default when set

    # Security
    api_key_salt: str
    guest_key_ttl_hours: int = 24

    # CORS
    allowed_origins: str = "http://localhost:5173,http://localhost:3000"

    # Redis (only for the dedicated ARQ worker process)
    redis_url: str = "redis://127.0.0.1:6379"

    # Generated artifacts
    output_dir: str = "uploads"
    public_uploads_path: str = "/uploads"

    # Background workers
    run_workers_in_api: bool = True
    job_poll_interval_seconds: float = 2.0
    screenshot_timeout_ms: int = 30000
    pdf_timeout_ms: int = 45000
    inspect_timeout_ms: int = 45000
    render_hard_timeout_seconds: float = 90.0

    monitor_poll_interval_seconds: float = 5.0
    monitor_batch_limit: int = 10
    monitor_concurrency: int = 3
    monitor_user_agent: str = "Monitorify/1.0"

    cleanup_interval_seconds: float = 3600.0
    orphan_max_age_hours: int = 48

    # Diagnostics
    page_speed_cache_ttl_seconds: int = 300
    lighthouse_bin: str = "lighthouse"
    lighthouse_timeout_seconds: float = 120.0

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.allowed_origins.split(",")]

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
