"""Application configuration using Pydantic settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # App Settings
    debug: bool = False
    log_level: str = "INFO"
    log_dir: str = "logs"
    quiet_loggers: str = "httpx,httpcore,openai"  # Comma-separated, capped at WARNING
    app_host: str = "127.0.0.1"
    app_port: int = 8001

    # Redis (LLM response cache)
    redis_url: str = "redis://localhost:6379/0"

    # ==========================================================================
    # Image Ingestion
    # ==========================================================================
    max_images: int = 5
    max_image_size_mb: int = 4
    error_display_seconds: float = 5.0  # Validation messages auto-expire after this

    # ==========================================================================
    # Local State
    # ==========================================================================
    state_dir: str = "data/state"
    history_state_key: str = "sourcing_assistant.history"
    price_alerts_state_key: str = "sourcing_assistant.price_alerts"

    # ==========================================================================
    # Lead Capture
    # ==========================================================================
    lead_capture_url: str = "http://localhost:3000/api/save-lead"
    lead_capture_timeout_seconds: float = 30.0

    # ==========================================================================
    # AI & LLM Configuration
    # ==========================================================================
    openai_api_key: str = ""
    llm_model: str = "gpt-4o"  # Must accept image input
    image_quality_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.3
    llm_max_tokens: int = 4000
    llm_timeout_seconds: float = 120.0  # Passed to the SDK; no timeout is enforced on top

    # LLM Caching
    llm_cache_enabled: bool = False
    llm_cache_ttl_seconds: int = 3600

    # Branding used in prompts and cost breakdown labels
    brand_name: str = "Nexy.ai"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
