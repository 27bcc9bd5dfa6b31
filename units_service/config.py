from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./units.db"
    SECRET_KEY: str = "dev-secret-units"
    JWT_ALGORITHM: str = "HS256"
    LOG_LEVEL: str = "INFO"
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_ENABLED: bool = True
    UPDATE_MAX_RETRIES: int = 5  # повторы, если не дождались блокировки юнита
    UPDATE_RETRY_BACKOFF: float = 0.05  # секунды, верхняя граница паузы растёт с номером попытки

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
