from pydantic_settings import BaseSettings, SettingsConfigDict

TEN_MIB = 10 * 1024 * 1024


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    max_file_size_bytes: int = TEN_MIB

    batch_max_concurrency: int = 0
    allow_overlapping_batches: bool = True
    batch_history_size: int = 20

    records_backend: str = "memory"
    records_seed_demo: bool = False

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "invoices"
    db_username: str = "invoices"
    db_password: str = "secret"

    api_host: str = "0.0.0.0"
    api_port: int = 8000

    extraction_provider: str = "openai"
    extraction_temperature: float = 0.0

    extraction_openai_api_key: str = ""
    extraction_openai_model_name: str = "gpt-4o-mini"
    extraction_openai_timeout_seconds: int = 60

    extraction_gemini_api_key: str = ""
    extraction_gemini_model_name: str = "gemini-2.0-flash"
    extraction_gemini_timeout_seconds: int = 60

    extraction_openrouter_api_key: str = ""
    extraction_openrouter_model_name: str = ""
    extraction_openrouter_timeout_seconds: int = 60

    extraction_groq_api_key: str = ""
    extraction_groq_model_name: str = ""
    extraction_groq_timeout_seconds: int = 60

    extraction_together_api_key: str = ""
    extraction_together_model_name: str = ""
    extraction_together_timeout_seconds: int = 60

    extraction_ollama_api_key: str = "ollama"
    extraction_ollama_model_name: str = ""
    extraction_ollama_timeout_seconds: int = 120

    extraction_openai_compatible_api_key: str = ""
    extraction_openai_compatible_model_name: str = ""
    extraction_openai_compatible_timeout_seconds: int = 60
    extraction_openai_compatible_base_url: str = ""
