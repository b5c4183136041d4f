
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):

    store_backend: str = "supabase"  # "supabase" | "memory"
    supabase_url: str = "http://localhost:54321"
    supabase_service_role_key: str = ""
    http_timeout: float = 30.0

    embedding_backend: str = "openai"  # "openai" | "sentence_transformer"
    openai_api_key: str = ""
    openai_base_url: Optional[str] = None
    embedding_model: str = "text-embedding-3-small"
    local_embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    embedding_batch_size: int = 100

    chunk_size: int = 1200
    chunk_overlap: int = 200

    search_limit: int = 10
    vector_threshold: float = 0.3
    lexical_max_terms: int = 4
    lexical_score_floor: float = 0.1
    fusion_text_weight: float = 0.5
    fusion_vector_weight: float = 0.5

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
