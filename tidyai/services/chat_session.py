"""Состояние чата для одной загруженной фотографии"""
import uuid
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, Sequence

from ..config import settings
from ..models.schemas import ChatMessage, ConversationTurn, Part, RoomAnalysis
from ..utils.logger import logger
from .errors import SessionBusyError, SessionNotFoundError
from .prompts import CHAT_CONNECTION_APOLOGY, SEED_MODEL_ACK, SEED_USER_CAPTION, WELCOME_MESSAGE

# (history, text) -> ответ модели
ChatSender = Callable[[Sequence[ConversationTurn], str], Awaitable[str]]


def seed_history(image_base64: str) -> List[ConversationTurn]:
    """Синтетический первый обмен: фото + подпись от пользователя, подтверждение от модели"""
    return [
        ConversationTurn(
            role="user",
            parts=[Part.from_image(image_base64), Part.from_text(SEED_USER_CAPTION)],
        ),
        ConversationTurn.from_text("model", SEED_MODEL_ACK),
    ]


class ChatSession:
    """Сессия одной фотографии: анализ, история для API и видимая лента сообщений.

    История только дополняется и живет столько же, сколько сессия. Одновременно
    обрабатывается не больше одного сообщения (флаг busy), поэтому блокировки
    не нужны.
    """

    def __init__(
        self,
        image_base64: str,
        analysis: Optional[RoomAnalysis] = None,
        session_id: Optional[str] = None,
    ):
        self.id = session_id or str(uuid.uuid4())
        self.image_base64 = image_base64
        self.analysis = analysis
        self.history: List[ConversationTurn] = seed_history(image_base64)
        self.transcript: List[ChatMessage] = [ChatMessage(id="welcome", role="model", text=WELCOME_MESSAGE)]
        self.created_at = datetime.now(timezone.utc)
        self.busy = False

    @classmethod
    def start(cls, image_base64: str, analysis: Optional[RoomAnalysis] = None) -> "ChatSession":
        return cls(image_base64, analysis=analysis)

    async def submit(self, text: str, send: ChatSender) -> ChatMessage:
        """Один обмен репликами. Возвращает сообщение модели (или извинение)."""
        message = (text or "").strip()
        if not message:
            raise ValueError("Message text is empty")
        if self.busy:
            raise SessionBusyError(detail=f"Session {self.id} already has a message in flight")

        self.busy = True
        self.transcript.append(ChatMessage(role="user", text=message))
        try:
            # изображение уже есть в затравке, повторно не отправляем
            reply_text = await send(self.history, message)
        except Exception as e:
            logger.error(f"Chat exchange failed for session {self.id}: {type(e).__name__}: {e}")
            reply = ChatMessage(role="model", text=CHAT_CONNECTION_APOLOGY)
            self.transcript.append(reply)
            return reply
        finally:
            self.busy = False

        reply = ChatMessage(role="model", text=reply_text)
        self.transcript.append(reply)
        self.history.extend([
            ConversationTurn.from_text("user", message),
            ConversationTurn.from_text("model", reply_text),
        ])
        logger.info(f"Session {self.id}: exchange completed, history has {len(self.history)} turns")
        return reply


class SessionStore:
    """Сессии в памяти процесса; самые старые вытесняются при переполнении"""

    def __init__(self, max_sessions: int = 100):
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, ChatSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def create(self, image_base64: str, analysis: Optional[RoomAnalysis] = None) -> ChatSession:
        session = ChatSession.start(image_base64, analysis=analysis)
        self._sessions[session.id] = session

        while len(self._sessions) > self.max_sessions:
            evicted_id, _ = self._sessions.popitem(last=False)
            logger.info(f"Session evicted: {evicted_id}")

        logger.info(f"Session created: {session.id} ({len(self._sessions)} active)")
        return session

    def get(self, session_id: str) -> ChatSession:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(detail=f"Unknown session: {session_id}") from None

    def discard(self, session_id: str) -> bool:
        """Сброс сессии целиком. Незавершенный запрос доработает на отвязанном объекте."""
        removed = self._sessions.pop(session_id, None) is not None
        if removed:
            logger.info(f"Session discarded: {session_id}")
        return removed


_session_store = None


def get_session_store() -> SessionStore:
    """Общее хранилище сессий процесса"""
    global _session_store
    if _session_store is None:
        _session_store = SessionStore(max_sessions=settings.max_sessions)
    return _session_store
