from pathlib import Path
from typing import Optional

from pydantic import Field, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEV_JWT_SECRET = "dev-only-change-me"


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    # Storage backend: "sqlite", "postgres" or "json"
    adapter: str = Field(default="sqlite", alias="DB_ADAPTER")
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")
    sqlite_path: str = Field(default="./data/study-buddy.db", alias="SQLITE_PATH")
    json_path: str = Field(default="./data", alias="JSON_DB_PATH")

    @computed_field
    def connection_string(self) -> str:
        """SQLAlchemy async URL for the SQL backend (users always live here)."""
        if self.adapter.lower() == "postgres":
            if not self.database_url:
                raise ValueError("DATABASE_URL is required when DB_ADAPTER=postgres")
            url = self.database_url
            if url.startswith("postgres://"):
                url = "postgresql://" + url[len("postgres://") :]
            if url.startswith("postgresql://"):
                url = "postgresql+asyncpg://" + url[len("postgresql://") :]
            return url
        return f"sqlite+aiosqlite:///{Path(self.sqlite_path).as_posix()}"


class AISettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    # Provider selection: "groq", "cerebras", "openrouter" or "google"
    provider: str = Field(default="groq", alias="AI_PROVIDER")
    model: str = Field(default="llama-3.3-70b-versatile", alias="AI_MODEL")
    temperature: float = Field(default=0.3, alias="AI_TEMPERATURE")
    max_tokens: int = Field(default=8000, alias="AI_MAX_TOKENS")
    # Unset means no client-side timeout
    timeout_seconds: Optional[float] = Field(default=None, alias="AI_TIMEOUT_SECONDS")

    groq_api_key: Optional[str] = Field(default=None, alias="GROQ_API_KEY")
    cerebras_api_key: Optional[str] = Field(default=None, alias="CEREBRAS_API_KEY")
    openrouter_api_key: Optional[str] = Field(default=None, alias="OPENROUTER_API_KEY")
    gemini_api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")


class JWTSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    token_lifetime_seconds: int = Field(
        default=7 * 24 * 3600, alias="JWT_TOKEN_LIFETIME_SECONDS"
    )


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    name: str = Field(default="study-buddy", alias="APP_NAME")
    version: str = Field(default="v1", alias="API_VERSION")
    port: int = Field(default=9000, alias="APP_PORT")
    mode: str = Field(default="prod", alias="MODE")
    jwt_secret: str = Field(default=DEV_JWT_SECRET, alias="JWT_SECRET")
    max_upload_bytes: int = Field(default=100 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")
    queue_concurrency: int = Field(default=2, alias="QUEUE_CONCURRENCY")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"], alias="CORS_ORIGINS"
    )

    @computed_field
    def is_production(self) -> bool:
        return self.mode != "dev"

    @model_validator(mode="after")
    def _require_secret_outside_dev(self) -> "AppSettings":
        # The built-in secret is public; only dev may sign tokens with it
        if self.mode != "dev" and self.jwt_secret == DEV_JWT_SECRET:
            raise ValueError("JWT_SECRET must be set when MODE is not dev")
        return self


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=lambda: AppSettings())
    database: DatabaseSettings = Field(default_factory=lambda: DatabaseSettings())
    ai: AISettings = Field(default_factory=lambda: AISettings())
    jwt: JWTSettings = Field(default_factory=lambda: JWTSettings())


settings = Settings()
