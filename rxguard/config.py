"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - rxguard_llm_base_url unset means baseline answers are placeholders, not errors

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
    - label_inline_max_bytes keeps a margin under 1 MiB document limits of
      document stores, so snapshots stay portable between backends
"""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://rxguard:rxguard@db:5432/rxguard"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # openFDA label source
    openfda_base_url: str = "https://api.fda.gov/drug/label.json"
    openfda_api_key: str | None = None
    openfda_timeout_seconds: float = 20.0

    # Resolution cache
    label_candidate_limit: int = 8
    label_inline_max_bytes: int = 900_000
    blob_store_dir: str = "data/blobs"

    # Baseline collaborator (side-by-side demo only)
    rxguard_llm_base_url: str | None = None
    rxguard_llm_api_key: str | None = None
    rxguard_llm_provider: Literal["openai_compat", "ollama"] = "openai_compat"
    rxguard_model_a: str = "mistral-7b"
    rxguard_model_b: str = "llama3-8b"
    baseline_timeout_seconds: float = 30.0
    baseline_temperature: float = 0.7
    baseline_max_tokens: int = 400

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
