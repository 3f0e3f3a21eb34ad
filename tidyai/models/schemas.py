import base64
import math
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from google.genai import types
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..services.text_cleanup import sanitize_text

Role = Literal["user", "model"]
Difficulty = Literal["Easy", "Medium", "Hard"]
Category = Literal["Discard", "Organize", "Buy"]

JPEG_MIME_TYPE = "image/jpeg"


def _to_int(value):
    """Округляет числа и числовые строки; остальное оставляет валидации pydantic"""
    if isinstance(value, bool):
        raise ValueError("expected a number")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError("expected a finite number")
        return int(round(value))
    return value


class CamelModel(BaseModel):
    """Поля в JSON в camelCase, в Python - snake_case"""
    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Результат анализа
# ---------------------------------------------------------------------------

class SpaceUtilizationEntry(CamelModel):
    """Доля пространства для круговой диаграммы"""
    name: str
    value: int

    @field_validator("value", mode="before")
    @classmethod
    def _round_value(cls, value):
        return _to_int(value)


class ActionItem(CamelModel):
    """Отдельная задача плана уборки"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    title: str
    description: str
    difficulty: Difficulty
    category: Category

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        # модель иногда возвращает числовые id
        return "" if value is None else str(value)

    @field_validator("difficulty", "category", mode="before")
    @classmethod
    def _normalize_enum(cls, value):
        # "easy", " Organize " -> "Easy", "Organize"
        if isinstance(value, str):
            return value.strip().capitalize()
        return value


class RoomAnalysis(CamelModel):
    """Полный результат анализа комнаты"""
    room_type: str = Field(alias="roomType")
    clutter_level: int = Field(alias="clutterLevel", ge=0, le=100)
    summary: str
    space_utilization: List[SpaceUtilizationEntry] = Field(alias="spaceUtilization")
    action_items: List[ActionItem] = Field(alias="actionItems")
    aesthetic_suggestions: List[str] = Field(alias="aestheticSuggestions")

    @field_validator("clutter_level", mode="before")
    @classmethod
    def _clamp_clutter_level(cls, value):
        if isinstance(value, str):
            value = value.strip().rstrip("%")
        value = _to_int(value)
        if isinstance(value, int):
            return max(0, min(100, value))
        return value

    @model_validator(mode="after")
    def _unique_action_ids(self):
        seen = set()
        items = []
        for position, item in enumerate(self.action_items, start=1):
            item_id = item.id or str(position)
            if item_id in seen:
                suffix = 2
                while f"{item_id}-{suffix}" in seen:
                    suffix += 1
                item_id = f"{item_id}-{suffix}"
            seen.add(item_id)
            items.append(item if item_id == item.id else item.model_copy(update={"id": item_id}))
        self.action_items = items
        return self

    def sanitized(self) -> "RoomAnalysis":
        """Копия, в которой очищены все текстовые поля (перечисления и числа не трогаем)"""
        return self.model_copy(update={
            "room_type": sanitize_text(self.room_type),
            "summary": sanitize_text(self.summary),
            "space_utilization": [
                entry.model_copy(update={"name": sanitize_text(entry.name)})
                for entry in self.space_utilization
            ],
            "action_items": [
                item.model_copy(update={
                    "title": sanitize_text(item.title),
                    "description": sanitize_text(item.description),
                })
                for item in self.action_items
            ],
            "aesthetic_suggestions": [sanitize_text(s) for s in self.aesthetic_suggestions],
        })


# ---------------------------------------------------------------------------
# История разговора (формат API модели)
# ---------------------------------------------------------------------------

class InlineData(CamelModel):
    mime_type: str = Field(alias="mimeType")
    data: str  # base64 без data-URL префикса


class Part(CamelModel):
    """Текст или встроенные бинарные данные - строго одно из двух"""
    text: Optional[str] = None
    inline_data: Optional[InlineData] = Field(default=None, alias="inlineData")

    @model_validator(mode="after")
    def _exactly_one(self):
        if (self.text is None) == (self.inline_data is None):
            raise ValueError("Part must carry either text or inlineData")
        return self

    @classmethod
    def from_text(cls, text: str) -> "Part":
        return cls(text=text)

    @classmethod
    def from_image(cls, image_base64: str, mime_type: str = JPEG_MIME_TYPE) -> "Part":
        return cls(inline_data=InlineData(mime_type=mime_type, data=image_base64))

    def to_wire(self) -> types.Part:
        if self.inline_data is not None:
            return types.Part(inline_data=types.Blob(
                mime_type=self.inline_data.mime_type,
                data=base64.b64decode(self.inline_data.data),
            ))
        return types.Part(text=self.text)


class ConversationTurn(CamelModel):
    role: Role
    parts: List[Part] = Field(min_length=1)

    @classmethod
    def from_text(cls, role: Role, text: str) -> "ConversationTurn":
        return cls(role=role, parts=[Part.from_text(text)])

    def to_wire(self) -> types.Content:
        return types.Content(role=self.role, parts=[part.to_wire() for part in self.parts])


class ChatMessage(CamelModel):
    """Сообщение в том виде, в каком оно показывается в чате"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    role: Role
    text: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# ---------------------------------------------------------------------------
# Дашборд
# ---------------------------------------------------------------------------

class ChartSlice(CamelModel):
    name: str
    value: int
    color: str


class ActionGroup(CamelModel):
    category: Category
    title: str
    items: List[ActionItem]


class DashboardView(CamelModel):
    room_type: str = Field(alias="roomType")
    summary: str
    clutter_level: int = Field(alias="clutterLevel")
    clutter_tier: Literal["low", "medium", "high"] = Field(alias="clutterTier")
    action_groups: List[ActionGroup] = Field(alias="actionGroups")
    is_spotless: bool = Field(alias="isSpotless")
    chart: List[ChartSlice]
    aesthetic_suggestions: List[str] = Field(alias="aestheticSuggestions")


# ---------------------------------------------------------------------------
# Запросы / ответы API
# ---------------------------------------------------------------------------

class DataUrlImageRequest(CamelModel):
    """Изображение в base64 или как data:image/...;base64, URL"""
    image: str = Field(min_length=1)


class ChatRequest(CamelModel):
    text: str


class SessionResponse(CamelModel):
    session_id: str = Field(alias="sessionId")
    analysis: RoomAnalysis
    dashboard: DashboardView
    messages: List[ChatMessage]


class ChatResponse(CamelModel):
    reply: ChatMessage
    messages: List[ChatMessage]


class HealthResponse(CamelModel):
    status: str
    version: str
    gemini_api_key_configured: bool
    config: Dict[str, object]
