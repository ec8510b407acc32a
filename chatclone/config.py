from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database (required)
    database_url: str = Field(..., min_length=1)

    # JWT (required secret)
    secret_key: str = Field(..., min_length=1)
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Google Sign-In
    google_client_id: str = Field(..., min_length=1)

    # Azure OpenAI chat completions
    azure_openai_endpoint: str = Field(..., min_length=1)
    azure_openai_deployment: str = Field(..., min_length=1)
    azure_openai_api_version: str = Field(..., min_length=1)
    azure_openai_api_key: str = Field(..., min_length=1)

    # Completion retry on 429 (exponential backoff: 2s -> 4s -> 8s)
    completion_max_retries: int = 3
    completion_initial_delay_ms: int = 2000
    completion_timeout_seconds: float = 60.0

    # Frontend URL for CORS
    frontend_url: str = "http://localhost:5000"

    # Server
    host: str = "0.0.0.0"
    port: int = 5000

    log_level: str = "INFO"

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
