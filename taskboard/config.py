import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent
DEV_SECRET_KEY = "dev-secret-change-me"

DATABASE_URL = os.environ.get("DATABASE_URL", f"sqlite:///{BASE_DIR / 'taskboard.db'}")
SECRET_KEY = os.environ.get("SECRET_KEY", DEV_SECRET_KEY)
TOKEN_TTL_HOURS = int(os.environ.get("TOKEN_TTL_HOURS", "24"))
BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))
CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "http://localhost:5173")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


def _split_origins(value: str) -> list[str]:
    return [origin.strip() for origin in value.split(",") if origin.strip()]


@dataclass(frozen=True)
class Settings:
    database_url: str = DATABASE_URL
    secret_key: str = SECRET_KEY
    token_ttl_hours: int = TOKEN_TTL_HOURS
    bcrypt_rounds: int = BCRYPT_ROUNDS
    cors_origins: list[str] = field(default_factory=lambda: _split_origins(CORS_ORIGINS))
    log_level: str = LOG_LEVEL


def get_settings() -> Settings:
    return Settings()
