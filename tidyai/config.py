"""Настройки приложения"""
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Настройки из переменных окружения и .env"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # API Keys (отсутствие ключа - ошибка при первом запросе, а не при старте)
    gemini_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("gemini_api_key", "api_key"),
    )

    # Application
    app_name: str = "TidyAI"
    app_version: str = "1.0.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # File Upload
    max_upload_size_mb: int = 10
    allowed_extensions: List[str] = [".jpg", ".jpeg", ".png", ".webp"]
    jpeg_quality: int = 90

    # Gemini API
    gemini_model: str = "gemini-3-pro-preview"
    gemini_structured_output: bool = True

    # Sessions
    max_sessions: int = 100

    # Logging
    log_level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"


# Глобальный экземпляр настроек
settings = Settings()
