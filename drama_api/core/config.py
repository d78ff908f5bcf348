# drama_api/core/config.py
from typing import List, Optional

from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    # Database
    DATABASE_URL: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "drama_llm"
    DB_USER: str = "admin"
    DB_PASSWORD: Optional[str] = None
    DB_SSL: bool = False
    DB_POOL_SIZE: int = 20
    # seconds; maximum age of a pooled connection (pool_recycle), not idle time
    DB_IDLE_TIMEOUT: int = 30
    DB_CONNECT_TIMEOUT: int = 2  # seconds

    # Auth
    JWT_SECRET: str = "your-super-secret-jwt-key-change-this-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_IN: str = "7d"
    SESSION_EXPIRES_IN: int = 604800  # seconds
    # argon2 time_cost; not interchangeable with a bcrypt cost factor
    PASSWORD_HASH_ROUNDS: int = 2
    PASSWORD_HASH_MEMORY_KB: int = 65536
    PASSWORD_MIN_LENGTH: int = 8
    ENABLE_REGISTRATION: bool = True

    # Server
    CORS_ORIGIN: str = "http://localhost:5173"
    HOST: str = "localhost"
    PORT: int = 3001
    APP_ENV: str = "development"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        url = URL.create(
            "postgresql+asyncpg",
            username=self.DB_USER,
            password=self.DB_PASSWORD,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_NAME,
        )
        return url.render_as_string(hide_password=False)

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() == "production"

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGIN.split(",") if origin.strip()]


settings = Settings()
