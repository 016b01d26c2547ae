"""
Configuration centrale de l'application
"""
from typing import List, Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import json
import os


class Settings(BaseSettings):
    """Configuration de l'application"""

    # Application
    APP_NAME: str = "EduVerse API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    API_V1_STR: str = "/api/v1"
    APP_URL: str = "http://localhost:3000"

    # Security
    SECRET_KEY: str = "change_me_in_production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    AUTH_COOKIE_NAME: str = "AuthToken"
    AUTH_COOKIE_SECURE: bool = False

    # CORS (comma separated string or JSON list)
    BACKEND_CORS_ORIGINS: str = ""

    @property
    def cors_origins(self) -> List[str]:
        raw = (self.BACKEND_CORS_ORIGINS or "").strip()
        if not raw:
            return []
        if raw.startswith("["):
            return [str(o).rstrip("/") for o in json.loads(raw)]
        return [i.strip().rstrip("/") for i in raw.split(",") if i.strip()]

    # Firebase
    FIREBASE_CREDENTIALS_JSON: Optional[str] = None
    FIREBASE_STORAGE_BUCKET: Optional[str] = None

    # Cloudinary
    CLOUDINARY_CLOUD_NAME: Optional[str] = None
    CLOUDINARY_API_KEY: Optional[str] = None
    CLOUDINARY_API_SECRET: Optional[str] = None
    CLOUDINARY_ROOT_FOLDER: str = "eduverse"
    MAX_UPLOAD_SIZE: int = 10485760  # 10MB
    DEFAULT_COURSE_IMAGE: str = "/placeholder-image.svg"

    # Email
    MAIL_USERNAME: Optional[str] = None
    MAIL_PASSWORD: Optional[str] = None
    MAIL_FROM: str = "no-reply@eduverse.com"
    MAIL_PORT: int = 587
    MAIL_SERVER: str = "smtp.gmail.com"
    MAIL_TLS: bool = True
    ADMIN_EMAIL: str = "admin@eduverse.com"

    # Chat assistant (OpenAI-compatible endpoint)
    AI_API_KEY: Optional[str] = None
    AI_BASE_URL: Optional[str] = None
    AI_MODEL: str = "gpt-4o-mini"
    AI_MAX_TOKENS: int = 800
    AI_TEMPERATURE: float = 0.4
    AI_HISTORY_LIMIT: int = 20

    # Quizzes & notifications
    QUIZ_DEFAULT_PASSING_SCORE: float = 70.0
    NOTIFICATIONS_PAGE_SIZE: int = 50

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Optional[str]) -> str:
        return (v or "INFO").upper()

    model_config = SettingsConfigDict(
        env_file=os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), ".env"),
        case_sensitive=True,
        extra="ignore",  # Ignore les variables non déclarées dans le .env
    )

    @property
    def cloudinary_configured(self) -> bool:
        return bool(self.CLOUDINARY_CLOUD_NAME and self.CLOUDINARY_API_KEY and self.CLOUDINARY_API_SECRET)

    @property
    def mail_configured(self) -> bool:
        return bool(self.MAIL_USERNAME and self.MAIL_PASSWORD)


# Instance unique pour l'application
settings = Settings()
