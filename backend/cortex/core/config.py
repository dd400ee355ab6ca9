"""Runtime configuration helpers.

Classes:
    Settings: Pydantic settings model capturing environment-driven defaults.

Functions:
    get_settings(): Return a cached Settings instance for dependency injection.
"""

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app_name: str = "Cortex Assistant API"
    database_url: str = "sqlite+aiosqlite:///./data/cortex.db"
    log_level: str = "INFO"
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])

    openai_api_key: SecretStr | None = None
    openai_base_url: str | None = None
    openai_chat_model: str = "gpt-4"
    openai_embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = Field(default=1536, ge=1)

    completion_max_tokens: int = Field(default=150, ge=1)
    completion_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    completion_presence_penalty: float = 0.1
    completion_frequency_penalty: float = 0.1

    upstream_timeout_seconds: float = Field(default=30.0, gt=0)
    upstream_max_attempts: int = Field(default=1, ge=1)
    request_timeout_seconds: float = Field(default=60.0, gt=0)

    retrieval_match_threshold: float = Field(default=0.7, ge=-1.0, le=1.0)
    retrieval_match_count: int = Field(default=5, ge=0)
    retrieval_scan_window: int = Field(default=2000, ge=1)
    history_window: int = Field(default=10, ge=0)

    max_message_chars: int = Field(default=4000, ge=1)
    max_profile_field_chars: int = Field(default=500, ge=1)
    max_system_prompt_tokens: int = Field(default=3000, ge=1)
    return_embeddings: bool = True

    @property
    def openai_configured(self) -> bool:
        return self.openai_api_key is not None and bool(self.openai_api_key.get_secret_value())


@lru_cache()
def get_settings() -> Settings:
    return Settings()
