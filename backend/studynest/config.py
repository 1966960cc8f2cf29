"""Application configuration from environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All config comes from env vars or .env.backend file."""

    DATABASE_URL: str = "sqlite+aiosqlite:///./studynest.db"
    FILE_STORAGE_TYPE: str = "inline"  # "inline" or "local"
    FILE_STORAGE_PATH: str = "./backend/uploads"
    API_PORT: int = 3000
    CORS_ORIGINS: str = "http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    # Base64 length ceiling; leaves headroom under a 16 MiB document limit
    MAX_ENCODED_PAYLOAD_BYTES: int = 12 * 1024 * 1024

    # "public": anyone may register a student/teacher account
    # "admin": adminUsername/adminPassword must accompany every registration
    REGISTRATION_MODE: str = "public"

    # Bootstrap admin, skipped while ADMIN_PASSWORD is empty
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = ""
    ADMIN_ROLLNO: str = "admin"

    RECONCILE_ON_STARTUP: bool = True

    class Config:
        env_file = ".env.backend"
        env_file_encoding = "utf-8"


settings = Settings()
