from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24h
    TOKEN_ISSUER: str = "teamspace"
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Ignored for SQLite
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    # Message WebSocket
    # Upper bound for a single persistence call made while handling a frame.
    WS_OPERATION_TIMEOUT: float = 5.0
    # Upper bound for one outbound frame write; slower peers are dropped.
    WS_SEND_TIMEOUT: float = 5.0
    MESSAGE_HISTORY_DEFAULT_LIMIT: int = 50
    MESSAGE_HISTORY_MAX_LIMIT: int = 100

    model_config = {"env_file": ".env"}


settings = Settings()
