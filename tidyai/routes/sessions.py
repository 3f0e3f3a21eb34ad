from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile
import asyncio
import os

from ..config import settings
from ..models.schemas import (
    ChatRequest,
    ChatResponse,
    DataUrlImageRequest,
    SessionResponse,
)
from ..services.chat_session import ChatSession, SessionStore, get_session_store
from ..services.dashboard import build_dashboard
from ..services.errors import AnalysisError, SessionBusyError, SessionNotFoundError
from ..services.gemini_service import GeminiService, get_gemini_service
from ..utils.image import InvalidImageError, decode_base64_image, to_jpeg_base64
from ..utils.logger import logger

router = APIRouter(prefix="/api", tags=["sessions"])

INVALID_IMAGE_MESSAGE = "Пожалуйста, загрузите файл изображения."


async def read_upload(file: UploadFile) -> bytes:
    """Читает загруженный файл по частям с проверкой расширения и размера"""
    file_ext = os.path.splitext(file.filename or "")[1].lower()
    if file_ext not in settings.allowed_extensions:
        logger.warning(f"Invalid file extension: {file_ext!r}")
        raise HTTPException(
            status_code=400,
            detail=f"Неподдерживаемый формат файла. Допустимые форматы: {', '.join(settings.allowed_extensions)}"
        )

    max_size = settings.max_upload_size_mb * 1024 * 1024
    content = bytearray()
    chunk_size = 1024 * 1024  # 1MB

    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        content.extend(chunk)
        if len(content) > max_size:
            logger.warning(f"File too large: {len(content)} bytes")
            raise HTTPException(
                status_code=413,
                detail=f"Файл слишком большой. Максимум {settings.max_upload_size_mb} МБ."
            )

    return bytes(content)


def session_payload(session: ChatSession) -> SessionResponse:
    return SessionResponse(
        session_id=session.id,
        analysis=session.analysis,
        dashboard=build_dashboard(session.analysis),
        messages=session.transcript,
    )


async def start_session(raw: bytes, gemini: GeminiService, store: SessionStore) -> ChatSession:
    """Нормализация фото, анализ и создание сессии. При ошибке ничего не сохраняется."""
    try:
        image_base64 = await asyncio.to_thread(to_jpeg_base64, raw)
    except InvalidImageError as e:
        logger.warning(f"Rejected upload: {e}")
        raise HTTPException(status_code=400, detail=INVALID_IMAGE_MESSAGE)

    try:
        analysis = await gemini.analyze_room(image_base64)
    except AnalysisError as e:
        logger.warning(f"Analysis failed ({type(e).__name__}): {e.detail}")
        raise HTTPException(status_code=e.status_code, detail=e.user_message)

    return store.create(image_base64, analysis=analysis)


@router.post("/sessions", response_model=SessionResponse, status_code=201)
async def create_session(
    file: UploadFile = File(...),
    gemini: GeminiService = Depends(get_gemini_service),
    store: SessionStore = Depends(get_session_store),
):
    """Загрузка фото комнаты и анализ"""
    try:
        logger.info(f"Upload requested: {file.filename}")
        raw = await read_upload(file)
        session = await start_session(raw, gemini, store)
        return session_payload(session)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Session creation failed: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Ошибка обработки фото: {str(e)}")


@router.post("/sessions/from-data-url", response_model=SessionResponse, status_code=201)
async def create_session_from_data_url(
    request: DataUrlImageRequest,
    gemini: GeminiService = Depends(get_gemini_service),
    store: SessionStore = Depends(get_session_store),
):
    """То же, что /sessions, но изображение передается строкой base64 или data URL"""
    try:
        try:
            raw = decode_base64_image(request.image)
        except InvalidImageError as e:
            logger.warning(f"Rejected data URL upload: {e}")
            raise HTTPException(status_code=400, detail=INVALID_IMAGE_MESSAGE)

        session = await start_session(raw, gemini, store)
        return session_payload(session)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Session creation failed: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Ошибка обработки фото: {str(e)}")


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str, store: SessionStore = Depends(get_session_store)):
    """Анализ, дашборд и лента сообщений сессии"""
    try:
        return session_payload(store.get(session_id))
    except SessionNotFoundError as e:
        raise HTTPException(status_code=e.status_code, detail=e.user_message)


@router.post("/sessions/{session_id}/messages", response_model=ChatResponse)
async def send_message(
    session_id: str,
    request: ChatRequest,
    gemini: GeminiService = Depends(get_gemini_service),
    store: SessionStore = Depends(get_session_store),
):
    """Сообщение ассистенту по фото сессии"""
    try:
        session = store.get(session_id)
        reply = await session.submit(request.text, gemini.send_chat_message)
        return ChatResponse(reply=reply, messages=session.transcript)

    except (SessionNotFoundError, SessionBusyError) as e:
        raise HTTPException(status_code=e.status_code, detail=e.user_message)
    except ValueError:
        raise HTTPException(status_code=400, detail="Сообщение не может быть пустым.")


@router.delete("/sessions/{session_id}", status_code=204)
async def reset_session(session_id: str, store: SessionStore = Depends(get_session_store)):
    """Начать заново: сессия и ее история удаляются"""
    if not store.discard(session_id):
        raise HTTPException(status_code=404, detail=SessionNotFoundError.default_message)
    return Response(status_code=204)
