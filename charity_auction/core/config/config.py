from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
from hashlib import sha256


class Settings(BaseSettings):
    """Application configuration loaded from .env and the environment"""

    # Core
    app_name: str = "Charity Auction API"
    version: str = "1.0.0"
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 3
    debug: bool = False
    log_level: str = "INFO"

    # Database (Tortoise URL)
    database_url: str = "sqlite://db.sqlite3"

    # Redis
    redis_url: str = "redis://localhost:6379/0"

    # Celery
    celery_broker_url: str = "redis://localhost:6379/1"
    celery_result_backend: str = "redis://localhost:6379/2"

    # App Security
    secret_key: str = "change-me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    # CORS settings
    CORS_ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Bidding
    DEFAULT_BID_INCREMENT: int = 100
    CASCADE_MAX_ITERATIONS: int = 1000

    # Background sweep (seconds)
    AUTOBID_SWEEP_ENABLED: bool = True
    AUTOBID_SWEEP_INTERVAL: float = 2.0
    AUCTION_CLOSE_INTERVAL: float = 60.0

    # Notifications
    NOTIFICATION_CHANNEL_PREFIX: str = "auction"
    NOTIFICATION_RELAY_ENABLED: bool = True

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    def get_user_secret_key(self, user_id, user_salt: str = "") -> str:
        """
        Derives the per-user token signing key
        """
        base_str = f"{self.secret_key}-{user_id}-{user_salt}"
        return sha256(base_str.encode()).hexdigest()


settings = Settings()
