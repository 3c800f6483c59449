from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Service
    service_name: str = "shapeshyft"
    log_level: str = "INFO"

    # Persistence
    database_url: str = "sqlite:///./shapeshyft.sqlite3"

    # 64 hex chars (32 bytes) for AES-256
    encryption_key: str = ""

    # Bearer token -> subject identifier, e.g. {"dev-token": "user_dev_001"}
    auth_tokens: dict[str, str] = {}

    # Outbound LLM calls
    llm_request_timeout_seconds: float = 120.0
    llm_server_timeout_seconds: float = 120.0

    class Config:
        env_file = ".env"
        env_prefix = "SHAPESHYFT_"


settings = Settings()
