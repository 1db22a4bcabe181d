# config/settings.py
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SQLSAGE_", env_file=".env", extra="ignore")

    # LLM (OpenAI-compatible endpoint)
    LLM_API_BASE: str = "https://api.openai.com/v1"
    LLM_API_KEY: str | None = None
    LLM_MODEL: str = "gpt-4o-mini"
    CHAT_PATH: str = "/chat/completions"
    TEMPERATURE: float = 0.1
    MAX_OUTPUT_TOKENS: int = 1000
    REQUEST_TIMEOUT: float = 120.0

    # Embeddings; an empty model name selects the local hash embedder
    EMBEDDINGS_PATH: str = "/embeddings"
    EMBEDDING_MODEL: str | None = None
    EMBEDDING_DIM: int = 384

    # Prompting
    DIALECT: str = "PostgreSQL"
    LANGUAGE: str | None = None
    MAX_TOKENS: int = 14000

    # Knowledge store: "memory" or "qdrant"
    VECTOR_STORE: str = "memory"
    QDRANT_URL: str = "http://localhost:6333"
    QDRANT_API_KEY: str | None = None
    QDRANT_COLLECTION_PREFIX: str = "sqlsage"
    SIMILARITY_THRESHOLD: float = 0.7

    # Optional database the generated SQL runs against
    TARGET_DB_URL: str | None = None

    LOG_LEVEL: str = "INFO"

settings = Settings()
