"""Очистка ответов модели: артефакты в тексте и JSON внутри markdown"""
import re
from typing import Optional

# Английские переводы и пометки в скобках: "Кухня (Kitchen)"
_LATIN_PARENTHETICAL = re.compile(r"\([A-Za-z\s&:\-.]+\)")
_LEADING_LABEL = re.compile(
    r"^(?:Description|Translation|Context|Note|Analysis):\s*", re.IGNORECASE
)
_BOLD_MARKER = "**"
# Просочившиеся рассуждения модели
_REASONING_MARKER = re.compile(r"Wait,", re.IGNORECASE)

_OPENING_FENCE = re.compile(r"```[A-Za-z0-9_+-]*[ \t]*\n?")
_CLOSING_FENCE = "```"
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def _sanitize_once(text: str) -> str:
    text = _LATIN_PARENTHETICAL.sub("", text)
    text = _LEADING_LABEL.sub("", text, count=1)
    text = text.replace(_BOLD_MARKER, "")

    marker = _REASONING_MARKER.search(text)
    if marker:
        text = text[:marker.start()]

    return text.strip()


def sanitize_text(text: Optional[str]) -> str:
    """Удаляет артефакты модели из свободного текста. Никогда не падает.

    Каждое правило только удаляет символы, поэтому проход повторяется до
    неподвижной точки: sanitize_text(sanitize_text(x)) == sanitize_text(x).
    """
    if not text:
        return ""

    while True:
        cleaned = _sanitize_once(text)
        if cleaned == text:
            return cleaned
        text = cleaned


def extract_json(text: Optional[str]) -> str:
    """Сужает ответ модели до подстроки, которая скорее всего является JSON-объектом.

    Синтаксис не проверяется: если фигурных скобок нет, возвращается текст без
    ограждений ``` как есть, и ошибку покажет json.loads у вызывающего.
    """
    if not text:
        return ""

    stripped = _OPENING_FENCE.sub("", text)
    stripped = stripped.replace(_CLOSING_FENCE, "")

    match = _JSON_OBJECT.search(stripped)
    if match:
        return match.group(0)
    return stripped
