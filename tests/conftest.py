import base64
import json
import os
from io import BytesIO
from types import SimpleNamespace

# до импорта tidyai: без файла логов и без настоящего ключа
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ["GEMINI_API_KEY"] = ""

import httpx
import pytest
from PIL import Image

from tidyai.main import app
from tidyai.services.chat_session import SessionStore, get_session_store
from tidyai.services.gemini_service import GeminiService, get_gemini_service

SAMPLE_ANALYSIS = {
    "roomType": "Спальня",
    "clutterLevel": 85,
    "summary": "Много вещей на полу и на стуле.",
    "spaceUtilization": [
        {"name": "Мебель", "value": 40},
        {"name": "Свободно", "value": 25},
        {"name": "Хлам", "value": 35},
    ],
    "actionItems": [
        {"id": "1", "title": "Разобрать стул", "description": "Уберите одежду в шкаф.",
         "difficulty": "Easy", "category": "Discard"},
        {"id": "2", "title": "Выбросить коробки", "description": "Сложите и вынесите коробки.",
         "difficulty": "Medium", "category": "Discard"},
        {"id": "3", "title": "Купить корзины", "description": "Две корзины для белья.",
         "difficulty": "Easy", "category": "Buy"},
    ],
    "aestheticSuggestions": ["Добавьте теплый свет у кровати."],
}


class FakeModels:
    """Подмена client.models: отдает заранее заданные ответы по очереди"""

    def __init__(self):
        self.responses = []
        self.calls = []
        self.default_reply = "Начните с пола."

    def generate_content(self, model, contents, config=None):
        self.calls.append(SimpleNamespace(model=model, contents=contents, config=config))
        result = self.responses.pop(0) if self.responses else self.default_reply
        if isinstance(result, BaseException):
            raise result
        return SimpleNamespace(text=result)


class FakeGenAIClient:
    def __init__(self):
        self.models = FakeModels()


@pytest.fixture
def fake_client():
    return FakeGenAIClient()


@pytest.fixture
def gemini(fake_client):
    return GeminiService(api_key="test-key", model="test-model", client=fake_client)


@pytest.fixture
def store():
    return SessionStore(max_sessions=10)


@pytest.fixture
def sample_analysis():
    return json.loads(json.dumps(SAMPLE_ANALYSIS))


@pytest.fixture
def jpeg_bytes():
    buffer = BytesIO()
    Image.new("RGB", (32, 24), color=(200, 180, 160)).save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    buffer = BytesIO()
    Image.new("RGBA", (16, 16), color=(10, 20, 30, 255)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def image_b64(jpeg_bytes):
    return base64.b64encode(jpeg_bytes).decode("ascii")


@pytest.fixture
async def client(gemini, store):
    app.dependency_overrides[get_gemini_service] = lambda: gemini
    app.dependency_overrides[get_session_store] = lambda: store
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()
