from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str
    project_name: str = "Spotlight API"
    api_prefix: str = "/api"

    # Browser origins allowed to call the API (the chat front end)
    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"

    # Gemini AI configuration
    # gemini_api_key: used only for the chat orchestrator (POST /api/chat); missing key is a configuration error
    gemini_api_key: str | None = None
    # yelp_ai_api_key: backs the simulated Yelp AI business directory (query_yelp_ai tool);
    #   when missing, the directory serves templated fallback businesses instead
    yelp_ai_api_key: str | None = None
    yelp_client_id: str | None = None
    gemini_model: str = "gemini-2.5-flash"
    # Upper bound for a single upstream call
    gemini_timeout_seconds: int = 30
    # Cooldown in seconds after 429 RESOURCE_EXHAUSTED; used when RetryInfo not present
    gemini_quota_cooldown_seconds: int = 60

    # In-memory chat response cache
    response_cache_ttl_seconds: int = 300
    response_cache_max_entries: int = 100

    # Account tokens (HS256)
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_expires_days: int = 7

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="forbid",
    )


settings = Settings()
