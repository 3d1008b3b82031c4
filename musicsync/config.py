from functools import lru_cache
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings"""

    model_config = SettingsConfigDict(env_file=".env")

    # App
    environment: Literal["development", "production"] = "development"

    # Browser origins allowed to open the event connection
    allowed_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "https://music-sync.vercel.app",
        "https://musicsync-e6za.onrender.com",
    ]

    # API
    api_v1_prefix: str = "/api/v1"

    # Rooms
    room_code_length: int = 6
    room_code_max_attempts: int = 16

    # Frames buffered per connection before the oldest are dropped
    outbound_queue_size: int = 256

    # Logging
    log_level: str = "INFO"

    @property
    def allowed_cors_origins(self) -> list[str]:
        """CORS allowed origins"""
        return list(self.allowed_origins)

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def debug(self) -> bool:
        return self.environment == "development"


@lru_cache()
def get_settings():
    return Settings()
