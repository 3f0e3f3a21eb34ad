import asyncio
import json
from typing import Any, List, Optional, Sequence

from google import genai
from google.genai import types
from pydantic import ValidationError

from ..config import settings
from ..models.schemas import ConversationTurn, Part, RoomAnalysis
from ..utils.logger import logger
from .errors import (
    AnalysisError,
    ConfigError,
    GenericAnalysisError,
    ParseError,
    classify_error,
    match_error_class,
)
from .prompts import (
    ANALYSIS_PROMPT,
    ANALYSIS_RESPONSE_SCHEMA,
    ANALYSIS_SYSTEM_INSTRUCTION,
    CHAT_EMPTY_REPLY,
    CHAT_ERROR_REPLY,
    CHAT_SYSTEM_INSTRUCTION,
)
from .text_cleanup import extract_json


class GeminiService:
    """Google Gemini API: анализ фото комнаты и чат по нему"""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, client: Any = None):
        self.api_key = settings.gemini_api_key if api_key is None else api_key
        self.model = model or settings.gemini_model
        # клиент создается лениво: отсутствие ключа - ошибка первого запроса
        self._client = client

        logger.info(f"GeminiService initialized (model={self.model})")

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise ConfigError(detail="GEMINI_API_KEY is not configured")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def _generate(self, contents: List[types.Content], config: types.GenerateContentConfig):
        client = self.client
        return await asyncio.to_thread(
            client.models.generate_content,
            model=self.model,
            contents=contents,
            config=config,
        )

    def _analysis_config(self) -> types.GenerateContentConfig:
        if settings.gemini_structured_output:
            return types.GenerateContentConfig(
                system_instruction=ANALYSIS_SYSTEM_INSTRUCTION,
                response_mime_type="application/json",
                response_schema=ANALYSIS_RESPONSE_SCHEMA,
            )
        return types.GenerateContentConfig(system_instruction=ANALYSIS_SYSTEM_INSTRUCTION)

    async def analyze_room(self, image_base64: str) -> RoomAnalysis:
        """Анализ комнаты по фото (JPEG в base64 без префикса).

        Возвращает полностью заполненный и очищенный RoomAnalysis или
        выбрасывает AnalysisError нужного типа. Повторов нет.
        """
        try:
            if not image_base64:
                raise GenericAnalysisError(detail="Empty image payload")

            logger.info(f"Analyzing room image ({len(image_base64)} base64 chars)")

            contents = [
                ConversationTurn(
                    role="user",
                    parts=[Part.from_image(image_base64), Part.from_text(ANALYSIS_PROMPT)],
                ).to_wire()
            ]
            response = await self._generate(contents, self._analysis_config())

            response_text = getattr(response, "text", None)
            if not response_text:
                raise GenericAnalysisError(detail="No response text received from Gemini")

            analysis = self._parse_analysis(response_text).sanitized()
            logger.info(
                f"Room analysis completed: {analysis.room_type}, clutter={analysis.clutter_level}, "
                f"{len(analysis.action_items)} action items"
            )
            return analysis

        except Exception as e:
            raise classify_error(e) from e

    @staticmethod
    def _parse_analysis(response_text: str) -> RoomAnalysis:
        candidate = extract_json(response_text)
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError as e:
            logger.warning(f"Analysis response is not valid JSON: {e}; raw (first 300 chars): {response_text[:300]}")
            raise ParseError(detail=f"Invalid JSON in model response: {e}") from e

        try:
            return RoomAnalysis.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Analysis response has unexpected shape: {e.error_count()} errors")
            raise ParseError(detail=f"Unexpected analysis shape: {e}") from e

    async def send_chat_message(
        self,
        history: Sequence[ConversationTurn],
        new_message: str,
        image_base64: Optional[str] = None,
    ) -> str:
        """Следующая реплика модели. Ошибки не выбрасываются - вместо них
        возвращается текст-извинение, чтобы диалог не обрывался.
        История не изменяется: ее пополняет вызывающий.
        """
        try:
            contents = [turn.to_wire() for turn in history]

            parts = [Part.from_text(new_message)]
            if image_base64:
                parts.insert(0, Part.from_image(image_base64))
            contents.append(ConversationTurn(role="user", parts=parts).to_wire())

            response = await self._generate(
                contents,
                types.GenerateContentConfig(system_instruction=CHAT_SYSTEM_INSTRUCTION),
            )

            reply = getattr(response, "text", None)
            if not reply:
                logger.warning("Chat response contained no text")
                return CHAT_EMPTY_REPLY

            logger.info(f"Chat reply generated ({len(history)} prior turns)")
            return reply

        except Exception as e:
            error_class = type(e) if isinstance(e, AnalysisError) else match_error_class(e)
            if error_class is None:
                logger.error(f"Chat failed with unclassified error: {type(e).__name__}: {e}", exc_info=True)
            else:
                logger.warning(f"Chat failed ({error_class.__name__}): {e}")
            return CHAT_ERROR_REPLY


# Синглтон
_gemini_service = None


def get_gemini_service() -> GeminiService:
    """Экземпляр GeminiService"""
    global _gemini_service
    if _gemini_service is None:
        _gemini_service = GeminiService()
    return _gemini_service
