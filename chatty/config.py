# chatty/config.py
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    PROJECT_NAME: str = "Chatty API"
    PROJECT_VERSION: str = "1.0.0"
    PROJECT_DESCRIPTION: str = "A FastAPI-based group chat backend"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    # None keeps tokens valid until the user's password version changes
    ACCESS_TOKEN_EXPIRE_MINUTES: int | None = None
    BCRYPT_ROUNDS: int = 12

    DATABASE_URL: str = "sqlite+aiosqlite:///./chatty.db"
    SEED_DATA: bool = False

    PUBSUB_BACKEND: Literal["memory", "redis"] = "memory"
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    SUBSCRIPTION_QUEUE_SIZE: int = 100

    PUSH_ENABLED: bool = False
    PUSH_URL: str = "https://fcm.googleapis.com/fcm/send"
    PUSH_SERVER_KEY: str = ""
    PUSH_TIMEOUT_SECONDS: float = 5.0

    model_config = SettingsConfigDict(env_file=".env", extra="allow")
