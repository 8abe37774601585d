from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        case_sensitive=True, env_file=".env", extra="ignore"
    )

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    WS_PATH: str = "/ws"
    ENVIRONMENT: str = "development"

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_FILE_PATH: str = "logs/errors.log"
    LOG_EXCLUDED_PATHS: list[str] = ["/metrics", "/health"]

    # Loki settings
    LOKI_ENABLED: bool = False
    LOKI_URL: str = "http://loki:3100"
    LOKI_VERSION: str = "1"

    # Operator credentials (guard disabled when password is not set)
    OPERATOR_USERNAME: str = "admin"
    OPERATOR_PASSWORD: str | None = None


app_settings = Settings()
