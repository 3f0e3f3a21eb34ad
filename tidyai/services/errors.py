"""Типы ошибок и классификация ошибок Gemini API.

Ошибки SDK различаются только текстом, поэтому сопоставление подстрок
собрано в одной таблице ERROR_RULES. Чтобы поддержать новую формулировку,
достаточно поправить таблицу.
"""
from typing import List, Optional, Sequence, Tuple, Type

from ..utils.logger import logger


class TidyAIError(Exception):
    """Базовая ошибка приложения с сообщением для пользователя"""

    status_code: int = 500
    default_message: str = "Произошла непредвиденная ошибка."

    def __init__(self, detail: Optional[str] = None, user_message: Optional[str] = None):
        self.detail = detail or self.default_message
        self.user_message = user_message or self.default_message
        super().__init__(self.detail)


class AnalysisError(TidyAIError):
    """Базовая ошибка анализа изображения"""


class ConfigError(AnalysisError):
    status_code = 503
    default_message = "API-ключ Gemini не настроен или недействителен."


class RegionUnsupportedError(AnalysisError):
    status_code = 403
    default_message = "Gemini API недоступен в вашем регионе. Пожалуйста, используйте VPN."


class RateLimitError(AnalysisError):
    status_code = 429
    default_message = "Превышен лимит запросов к Gemini API. Попробуйте немного позже."


class GenericAnalysisError(AnalysisError):
    status_code = 502
    default_message = "Не удалось проанализировать изображение. Попробуйте с более четким фото."


class ParseError(GenericAnalysisError):
    """Ответ модели не является корректным JSON нужной формы"""
    default_message = "Не удалось разобрать ответ модели. Попробуйте с более четким фото."


class SessionNotFoundError(TidyAIError):
    status_code = 404
    default_message = "Сессия не найдена. Загрузите фото заново."


class SessionBusyError(TidyAIError):
    status_code = 409
    default_message = "Дождитесь ответа на предыдущее сообщение."


# Порядок важен: первая подходящая строка определяет класс ошибки.
ERROR_RULES: List[Tuple[Type[AnalysisError], Sequence[str]]] = [
    (ConfigError, (
        "api key not valid",
        "api_key_invalid",
        "api key expired",
        "unauthenticated",
        "missing api key",
    )),
    (RegionUnsupportedError, (
        "region not supported",
        "user location is not supported",
        "location is not supported",
        "403",
    )),
    (RateLimitError, (
        "429",
        "resource_exhausted",
        "quota",
        "rate limit",
    )),
]


def _error_text(exc: BaseException) -> str:
    parts = [type(exc).__name__, str(exc)]
    for attr in ("code", "status", "message"):
        value = getattr(exc, attr, None)
        if value is not None:
            parts.append(str(value))
    return " ".join(parts).lower()


def match_error_class(exc: BaseException) -> Optional[Type[AnalysisError]]:
    """Класс ошибки по таблице правил или None, если ничего не подошло"""
    text = _error_text(exc)
    for error_class, needles in ERROR_RULES:
        if any(needle in text for needle in needles):
            return error_class
    return None


def classify_error(exc: BaseException) -> AnalysisError:
    """Превращает любое исключение анализа в типизированную AnalysisError"""
    if isinstance(exc, AnalysisError):
        return exc

    error_class = match_error_class(exc)
    if error_class is None:
        logger.error(f"Unclassified upstream error: {type(exc).__name__}: {exc}", exc_info=exc)
        return GenericAnalysisError(detail=str(exc))

    logger.warning(f"Upstream error classified as {error_class.__name__}: {exc}")
    return error_class(detail=str(exc))
