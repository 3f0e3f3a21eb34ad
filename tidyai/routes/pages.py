"""HTML-интерфейс: загрузка фото, дашборд и чат (серверный рендеринг)"""
from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from pathlib import Path

from ..services.chat_session import SessionStore, get_session_store
from ..services.dashboard import build_dashboard
from ..services.errors import SessionBusyError, SessionNotFoundError
from ..services.gemini_service import GeminiService, get_gemini_service
from ..utils.logger import logger
from .sessions import read_upload, start_session

router = APIRouter(tags=["pages"])

BASE_DIR = Path(__file__).resolve().parent.parent.parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

FEATURES = [
    ("Мгновенный анализ", "Получите мгновенную разбивку категорий беспорядка."),
    ("Конкретные шаги", "Пошаговое руководство по устранению беспорядка."),
    ("Советы по дизайну", "Эстетические рекомендации для улучшения пространства."),
]


def render_home(request: Request, error: str = None, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "index.html",
        {"features": FEATURES, "error": error},
        status_code=status_code,
    )


@router.get("/")
async def home(request: Request):
    """Главная страница с загрузкой фото"""
    return render_home(request)


@router.post("/upload")
async def upload(
    request: Request,
    file: UploadFile = File(...),
    gemini: GeminiService = Depends(get_gemini_service),
    store: SessionStore = Depends(get_session_store),
):
    """Анализ загруженного фото; при ошибке - снова страница загрузки с баннером"""
    try:
        raw = await read_upload(file)
        session = await start_session(raw, gemini, store)
    except HTTPException as e:
        return render_home(request, error=e.detail, status_code=e.status_code)

    return RedirectResponse(url=f"/sessions/{session.id}", status_code=303)


@router.get("/sessions/{session_id}")
async def session_page(
    request: Request,
    session_id: str,
    store: SessionStore = Depends(get_session_store),
):
    try:
        session = store.get(session_id)
    except SessionNotFoundError as e:
        return render_home(request, error=e.user_message, status_code=e.status_code)

    return templates.TemplateResponse(
        request,
        "session.html",
        {
            "session": session,
            "dashboard": build_dashboard(session.analysis),
            "messages": session.transcript,
        },
    )


@router.post("/sessions/{session_id}/messages")
async def post_message(
    request: Request,
    session_id: str,
    text: str = Form(""),
    gemini: GeminiService = Depends(get_gemini_service),
    store: SessionStore = Depends(get_session_store),
):
    try:
        session = store.get(session_id)
        # пустое сообщение просто игнорируется
        if text.strip():
            await session.submit(text, gemini.send_chat_message)
    except SessionNotFoundError as e:
        return render_home(request, error=e.user_message, status_code=e.status_code)
    except SessionBusyError:
        logger.info(f"Ignored message for busy session {session_id}")

    return RedirectResponse(url=f"/sessions/{session_id}#chat", status_code=303)


@router.post("/sessions/{session_id}/reset")
async def reset(session_id: str, store: SessionStore = Depends(get_session_store)):
    store.discard(session_id)
    return RedirectResponse(url="/", status_code=303)
