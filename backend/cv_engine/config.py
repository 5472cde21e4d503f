from pydantic_settings import BaseSettings
from pydantic import field_validator
from functools import lru_cache
from typing import List, Optional
import os


class Settings(BaseSettings):
    app_name: str = "CV Evaluation Engine API"
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"
    log_level: str = "INFO"

    # CORS - comma-separated list of allowed origins
    cors_origins: str = "http://localhost:3000"

    # Usage log store - SQLite locally, PostgreSQL in production
    database_url: str = "sqlite+aiosqlite:///./cv_engine.db"

    # AI/LLM Configuration
    gemini_api_key: str = ""
    # Comma-separated, tried in order: fastest/cheapest first
    gemini_models: str = "gemini-2.0-flash,gemini-2.0-flash-lite,gemini-flash-latest"
    generation_max_attempts: int = 3
    generation_backoff_base_seconds: float = 2.0
    generation_temperature: float = 0.1
    generation_max_output_tokens: int = 8192
    light_model_timeout_seconds: float = 10.0  # "flash" models
    heavy_model_timeout_seconds: float = 20.0

    # Prompt budgets (characters of resume text sent to the model)
    parse_text_limit: int = 20000
    evaluation_text_limit: int = 15000

    # Overall deadline for one evaluation (parse + evaluate branches)
    evaluation_timeout_seconds: Optional[float] = None

    # Usage accounting (Gemini Flash pricing, USD)
    usage_input_rate_per_million: float = 0.075
    usage_output_rate_per_million: float = 0.30
    usage_log_timeout_seconds: float = 5.0

    # Batch scoring
    batch_max_concurrent: int = 3
    batch_jitter_seconds: float = 0.3
    batch_jitter_random_seconds: float = 0.5
    batch_cooldown_seconds: float = 2.0

    class Config:
        env_file = ".env"
        extra = "ignore"
        # Make field names case-insensitive for environment variables
        case_sensitive = False

    @field_validator("gemini_models", mode="before")
    @classmethod
    def join_models(cls, v):
        """Allow the model list to be passed as a Python list."""
        if isinstance(v, (list, tuple)):
            return ",".join(str(m) for m in v)
        return v

    @field_validator("gemini_models")
    @classmethod
    def require_models(cls, v: str) -> str:
        if not any(m.strip() for m in v.split(",")):
            raise ValueError("At least one Gemini model must be configured")
        return v

    def get_cors_origins(self) -> list:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def get_gemini_models(self) -> List[str]:
        """Parse the ordered model fallback list"""
        return [model.strip() for model in self.gemini_models.split(",") if model.strip()]

    def timeout_for_model(self, model_name: str) -> float:
        """Per-attempt budget; lightweight models must answer faster."""
        if "flash" in model_name.lower():
            return self.light_model_timeout_seconds
        return self.heavy_model_timeout_seconds


@lru_cache()
def get_settings() -> Settings:
    return Settings()
