from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    MEMORAI_HOST: str = Field("0.0.0.0", description="Interface the API server binds to")
    MEMORAI_PORT: int = Field(8484, description="Port the API server listens on")
    MEMORAI_OLLAMA_URL: str = Field(
        "http://localhost:11434",
        description="Base URL of the Ollama inference service"
    )
    MEMORAI_EMBED_MODEL: str = Field(
        "mxbai-embed-large",
        description="Model for embeddings"
    )
    MEMORAI_CHAT_MODEL: str = Field(
        "qwen2.5:14b",
        description="Model for profile generation"
    )
    MEMORAI_DATA_DIR: Path = Field(
        default_factory=lambda: Path.home() / ".memorai" / "data",
        description="Directory holding the SQLite database"
    )
    MEMORAI_REQUEST_TIMEOUT: float = Field(
        120.0,
        description="Timeout in seconds for a single inference request"
    )
    MEMORAI_LOG_LEVEL: str = Field("INFO", description="Root log level")

# Singleton instance
settings = Settings()
