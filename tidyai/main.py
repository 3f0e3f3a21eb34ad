from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from fastapi.middleware.cors import CORSMiddleware
from pathlib import Path

from .routes import pages, sessions
from .config import settings
from .models.schemas import HealthResponse
from .utils.logger import logger

# Корень проекта (рядом с пакетом tidyai)
BASE_DIR = Path(__file__).resolve().parent.parent
STATIC_DIR = BASE_DIR / "static"

STATIC_DIR.mkdir(exist_ok=True)

logger.info(f"Starting {settings.app_name} v{settings.app_version}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Запуск и остановка приложения"""
    logger.info("=" * 50)
    logger.info("Application startup")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"Gemini API configured: {bool(settings.gemini_api_key)} (model={settings.gemini_model})")
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set; analysis requests will fail until it is configured")
    logger.info(f"Max upload size: {settings.max_upload_size_mb}MB")
    logger.info("=" * 50)

    yield

    logger.info("Application shutdown")


app = FastAPI(
    title=settings.app_name,
    description="Анализ беспорядка в комнате по фото и чат-ассистент",
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# CORS (из переменных окружения)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger.info(f"CORS enabled for origins: {settings.cors_origins}")

app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

app.include_router(sessions.router)
app.include_router(pages.router)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Проверка состояния сервиса"""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        gemini_api_key_configured=bool(settings.gemini_api_key),
        config={
            "model": settings.gemini_model,
            "max_upload_size_mb": settings.max_upload_size_mb,
            "max_sessions": settings.max_sessions,
        },
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )
