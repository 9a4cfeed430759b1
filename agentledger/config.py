"""
AgentLedger Configuration.

Pydantic Settings v2 — loads from .env, environment variables.
"""

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # ── Application ──────────────────────────────────────────────────────
    app_name: str = "AgentLedger"
    app_version: str = "1.0.0"
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")

    # ── API ───────────────────────────────────────────────────────────────
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")
    api_prefix: str = Field(default="/api", alias="API_PREFIX")
    allowed_origins: List[str] = Field(
        default=["http://localhost:3000"],
        alias="CORS_ORIGINS",
    )

    # ── Storage ──────────────────────────────────────────────────────────
    storage_backend: str = Field(default="sql", alias="STORAGE_BACKEND")
    database_url: str = Field(
        default="sqlite+aiosqlite:///./agentledger.db",
        alias="DATABASE_URL",
    )
    db_pool_size: int = Field(default=10, alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=20, alias="DB_MAX_OVERFLOW")
    db_pool_recycle: int = Field(default=3600, alias="DB_POOL_RECYCLE")

    # ── Redis ─────────────────────────────────────────────────────────────
    # Empty disables the analytics cache.
    redis_url: str = Field(default="", alias="REDIS_URL")
    analytics_cache_ttl: int = Field(default=60, alias="ANALYTICS_CACHE_TTL")

    # ── Auth ──────────────────────────────────────────────────────────────
    jwt_secret: str = Field(
        default="dev-jwt-secret-change-in-production",
        alias="JWT_SECRET",
    )
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = Field(default=480, alias="JWT_EXPIRE_MINUTES")
    session_cookie_name: str = Field(default="agentledger_session", alias="SESSION_COOKIE_NAME")
    session_cookie_secure: bool = Field(default=False, alias="SESSION_COOKIE_SECURE")
    bcrypt_rounds: int = Field(default=12, alias="BCRYPT_ROUNDS")

    # ── LLM ───────────────────────────────────────────────────────────────
    # auto picks the first provider with a key, none always uses heuristics.
    llm_provider: str = Field(default="auto", alias="LLM_PROVIDER")
    llm_timeout_seconds: float = Field(default=30.0, alias="LLM_TIMEOUT_SECONDS")
    llm_max_tokens: int = Field(default=1024, alias="LLM_MAX_TOKENS")
    anthropic_api_key: str = Field(default="", alias="ANTHROPIC_API_KEY")
    anthropic_model: str = Field(default="claude-sonnet-4-5-20250929", alias="ANTHROPIC_MODEL")
    openai_api_key: str = Field(default="", alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL")
    gemini_api_key: str = Field(default="", alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-1.5-flash", alias="GEMINI_MODEL")

    # ── Scoring ───────────────────────────────────────────────────────────
    report_risk_threshold: int = Field(default=60, alias="REPORT_RISK_THRESHOLD")
    similarity_window_days: int = Field(default=30, alias="SIMILARITY_WINDOW_DAYS")
    similarity_candidate_limit: int = Field(default=100, alias="SIMILARITY_CANDIDATE_LIMIT")

    # ── Alerting ──────────────────────────────────────────────────────────
    alert_http_timeout_seconds: float = Field(default=10.0, alias="ALERT_HTTP_TIMEOUT_SECONDS")
    slack_webhook_url: str = Field(default="", alias="SLACK_WEBHOOK_URL")
    sendgrid_api_key: str = Field(default="", alias="EMAIL_SERVICE_API_KEY")
    alert_smtp_host: str = Field(default="", alias="ALERT_SMTP_HOST")
    alert_smtp_port: int = Field(default=587, alias="ALERT_SMTP_PORT")
    alert_smtp_username: str = Field(default="", alias="ALERT_SMTP_USERNAME")
    alert_smtp_password: str = Field(default="", alias="ALERT_SMTP_PASSWORD")
    alert_smtp_start_tls: bool = Field(default=True, alias="ALERT_SMTP_START_TLS")
    alert_from_email: str = Field(default="alerts@agentledger.ai", alias="ALERT_FROM_EMAIL")
    alert_to_email: str = Field(default="", alias="ALERT_TO_EMAIL")
    notion_api_key: str = Field(default="", alias="NOTION_API_KEY")
    notion_database_id: str = Field(default="", alias="NOTION_DATABASE_ID")
    alert_log_fallback: bool = Field(default=True, alias="ALERT_LOG_FALLBACK")
    test_alert_delay_seconds: float = Field(default=1.0, alias="TEST_ALERT_DELAY_SECONDS")
    test_alert_success_rate: float = Field(default=0.9, alias="TEST_ALERT_SUCCESS_RATE")

    # ── Operational ────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses an async driver."""
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if url.startswith("sqlite://"):
            url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return url

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Settings are read once per process."""
    return Settings()
