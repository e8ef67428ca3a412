from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    PROJECT_NAME: str = "Coach Hub"

    BASE_DIR: Path = Path(__file__).resolve().parents[2]
    DATA_DIR: Path = BASE_DIR / "data"
    DATABASE_URL: str = f"sqlite:///{(DATA_DIR / 'coachhub.db').as_posix()}"

    LOG_LEVEL: str = "INFO"
    CORS_ALLOW_ORIGINS: list[str] = ["*"]

    SESSION_MAX_AGE_MS: int = 86_400_000
    SESSION_CLOCK_SKEW_MS: int = 300_000
    SESSION_SIGNING_KEY: str | None = None
    COOKIE_SECURE: bool = False
    CUSTOMER_SESSION_COOKIE: str = "user_session"
    TRAINER_SESSION_COOKIE: str = "trainer_session"
    ADMIN_SESSION_COOKIE: str = "admin_session"

    ADMIN_EMAIL: str | None = None
    ADMIN_PASSWORD: str | None = None

    MIN_PASSWORD_LENGTH: int = 6
    BCRYPT_ROUNDS: int = 12
    TRAINER_COUNT_WORKERS: int = 8

settings = Settings()
