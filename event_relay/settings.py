from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True)

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 3001

    # Cross-origin access (HTTP CORS and WebSocket Origin check)
    CORS_ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]
    CORS_ALLOWED_METHODS: list[str] = ["GET", "POST"]

    # Persistent connection endpoint
    WS_PATH: str = "/ws"

    # Logging settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_FILE_PATH: str | None = None
    LOG_EXCLUDED_PATHS: list[str] = ["/metrics", "/health"]

    # Loki settings
    LOKI_ENABLED: bool = False
    LOKI_URL: str = "http://loki:3100"
    LOKI_VERSION: str = "1"


app_settings = Settings()
