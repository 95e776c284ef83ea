"""Application configuration using Pydantic settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # T-Soft upstream
    tsoft_api_token: str = ""
    tsoft_base_url: str = "https://wawtesettur.tsoft.biz/rest1"
    tsoft_debug: bool = False  # Log request forms (token masked) and response bodies

    # App Settings
    debug: bool = False
    log_level: str = "INFO"
    log_dir: str = ""  # Defaults to the working directory
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    admin_api_key: str = ""

    # ==========================================================================
    # Upstream Request Settings
    # ==========================================================================
    upstream_timeout_seconds: float = 30.0  # Per transport call, no retries
    parse_failure_log_chars: int = 1000  # Raw body truncation in parse failure logs

    # ==========================================================================
    # Enrichment Settings
    # ==========================================================================
    order_detail_max_concurrent: int = 5
    product_image_max_concurrent: int = 3  # Enhanced product listing
    bulk_image_max_concurrent: int = 5
    enhanced_image_product_limit: int = 20  # Only the first N products get images

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
