import asyncio

import pytest

from tidyai.services.chat_session import ChatSession, SessionStore
from tidyai.services.errors import SessionBusyError, SessionNotFoundError
from tidyai.services.prompts import (
    CHAT_CONNECTION_APOLOGY,
    CHAT_ERROR_REPLY,
    SEED_MODEL_ACK,
    SEED_USER_CAPTION,
    WELCOME_MESSAGE,
)


class RecordingSender:
    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.calls = []

    async def __call__(self, history, text):
        self.calls.append((list(history), text))
        reply = self.replies.pop(0) if self.replies else f"Ответ на: {text}"
        if isinstance(reply, BaseException):
            raise reply
        return reply


async def failing_sender(history, text):
    raise ConnectionError("request rejected before response")


class TestSeed:
    def test_seed_exchange(self, image_b64):
        session = ChatSession.start(image_b64)

        assert [turn.role for turn in session.history] == ["user", "model"]
        user_parts = session.history[0].parts
        assert user_parts[0].inline_data.data == image_b64
        assert user_parts[0].inline_data.mime_type == "image/jpeg"
        assert user_parts[1].text == SEED_USER_CAPTION
        assert session.history[1].parts[0].text == SEED_MODEL_ACK

    def test_transcript_starts_with_welcome(self, image_b64):
        session = ChatSession.start(image_b64)

        assert len(session.transcript) == 1
        assert session.transcript[0].role == "model"
        assert session.transcript[0].text == WELCOME_MESSAGE


class TestSubmit:
    @pytest.mark.parametrize("exchanges", [1, 3])
    async def test_history_grows_by_two_per_exchange(self, image_b64, exchanges):
        session = ChatSession.start(image_b64)
        sender = RecordingSender()

        for n in range(exchanges):
            await session.submit(f"Вопрос {n}", sender)

        assert len(session.history) == 2 + 2 * exchanges
        roles = [turn.role for turn in session.history]
        assert roles == ["user", "model"] * (exchanges + 1)
        assert len(session.transcript) == 1 + 2 * exchanges

    async def test_exchange_appends_user_then_model(self, image_b64):
        session = ChatSession.start(image_b64)
        sender = RecordingSender(["Начните со стола."])

        reply = await session.submit("  С чего начать?  ", sender)

        assert reply.role == "model"
        assert reply.text == "Начните со стола."
        assert session.history[2].parts[0].text == "С чего начать?"
        assert session.history[3].parts[0].text == "Начните со стола."
        assert [m.role for m in session.transcript[-2:]] == ["user", "model"]

    async def test_follow_up_is_sent_without_image(self, image_b64):
        session = ChatSession.start(image_b64)
        sender = RecordingSender()

        await session.submit("Первый", sender)
        await session.submit("Второй", sender)

        history_seen, text = sender.calls[1]
        assert text == "Второй"
        assert len(history_seen) == 4
        image_turns = [t for t in history_seen if any(p.inline_data for p in t.parts)]
        assert image_turns == [history_seen[0]]

    async def test_failed_exchange_keeps_history(self, image_b64):
        session = ChatSession.start(image_b64)
        await session.submit("Первый", RecordingSender())
        history_before = list(session.history)
        transcript_before = len(session.transcript)

        reply = await session.submit("Второй", failing_sender)

        assert session.history == history_before
        assert len(session.transcript) == transcript_before + 2
        assert reply.text == CHAT_CONNECTION_APOLOGY
        apologies = [m for m in session.transcript if m.text == CHAT_CONNECTION_APOLOGY]
        assert len(apologies) == 1
        assert session.busy is False

    async def test_degraded_reply_is_a_normal_exchange(self, image_b64):
        session = ChatSession.start(image_b64)

        await session.submit("Вопрос", RecordingSender([CHAT_ERROR_REPLY]))

        assert len(session.history) == 4
        assert session.transcript[-1].text == CHAT_ERROR_REPLY

    @pytest.mark.parametrize("text", ["", "   ", None])
    async def test_blank_message_is_rejected(self, image_b64, text):
        session = ChatSession.start(image_b64)

        with pytest.raises(ValueError):
            await session.submit(text, RecordingSender())
        assert len(session.transcript) == 1

    async def test_single_message_in_flight(self, image_b64):
        session = ChatSession.start(image_b64)
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_sender(history, text):
            started.set()
            await release.wait()
            return "Готово"

        first = asyncio.create_task(session.submit("Первый", slow_sender))
        await started.wait()

        with pytest.raises(SessionBusyError):
            await session.submit("Второй", RecordingSender())

        release.set()
        await first
        assert len(session.history) == 4
        assert session.busy is False


class TestSessionStore:
    def test_create_and_get(self, image_b64):
        store = SessionStore()
        session = store.create(image_b64)

        assert store.get(session.id) is session
        assert session.id in store
        assert len(store) == 1

    def test_unknown_session(self):
        with pytest.raises(SessionNotFoundError):
            SessionStore().get("missing")

    def test_discard(self, image_b64):
        store = SessionStore()
        session = store.create(image_b64)

        assert store.discard(session.id) is True
        assert store.discard(session.id) is False
        assert session.id not in store

    def test_oldest_sessions_are_evicted(self, image_b64):
        store = SessionStore(max_sessions=2)
        first = store.create(image_b64)
        second = store.create(image_b64)
        third = store.create(image_b64)

        assert first.id not in store
        assert second.id in store and third.id in store
        assert len(store) == 2

    def test_sessions_do_not_share_history(self, image_b64):
        store = SessionStore()
        a = store.create(image_b64)
        b = store.create(image_b64)

        a.history.append(a.history[-1])

        assert len(b.history) == 2
