from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./bus_travel.db"
    DB_ECHO: bool = False

    # Security
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Bootstrap admin account
    ADMIN_EMAIL: str = "admin@bustravel.com"
    ADMIN_PASSWORD: str = "admin123"
    ADMIN_NAME: str = "Admin"

    # Application
    PROJECT_NAME: str = "Bus Travel Booking System"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = ""

    # Rate limiting: burst size and milliseconds per replenished token
    GLOBAL_RATE_BURST: int = 1000
    GLOBAL_RATE_INTERVAL_MS: int = 60
    PUBLIC_RATE_BURST: int = 100
    PUBLIC_RATE_INTERVAL_MS: int = 600
    TRAVELLER_RATE_BURST: int = 100
    TRAVELLER_RATE_INTERVAL_MS: int = 600
    DRIVER_RATE_BURST: int = 500
    DRIVER_RATE_INTERVAL_MS: int = 120

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
