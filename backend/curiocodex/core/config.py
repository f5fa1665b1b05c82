from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

class Settings(BaseSettings):
    app_name: str = "CurioCodex Backend"
    environment: str = "dev"
    api_version: str = "v1"
    log_level: str = "INFO"

    # External service keys
    openai_api_key: Optional[str] = None

    # Model config
    openai_model: str = "gpt-4o-mini"
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"

    # Database and storage paths
    database_url: str = "sqlite:///./curiocodex.db"
    vector_index_enabled: bool = True
    vector_store_dir: str = "./vector_store"  # empty string keeps the index in memory
    image_store_dir: str = "./item_images"

    # Enrichment
    generate_missing_descriptions: bool = False

    # Security
    allowed_origins: str = "*"
    session_ttl_seconds: int = 60 * 60 * 24 * 7

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars not yet modeled
    )

@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore
