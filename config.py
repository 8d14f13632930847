"""
Hotel API - Centralized Settings
================================

Values come from the environment, with a `.env` file at the project root
loaded first. Import the shared instance:

    from config import settings
"""

import os
from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Always load .env from the project root
BASE_DIR = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(BASE_DIR, ".env"))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    ENVIRONMENT: str = "development"

    # Database
    DATABASE_URL: str = "sqlite:///hotel.db"

    # Auth
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60 * 24  # 24 hours
    BCRYPT_ROUNDS: int = 12

    # Frontends allowed to call the API
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:8000",
    ]

    # Logs
    LOG_DIR: str = os.path.join(BASE_DIR, "logs")

    # Initial admin, seeded by init_db() only when a password is set
    ADMIN_USERNAME: str = "admin"
    ADMIN_EMAIL: str = "admin@hotel.com"
    ADMIN_PASSWORD: str = ""


settings = Settings()
