from google.genai import types

# ---------------------------------------------------------------------------
# Анализ комнаты
# ---------------------------------------------------------------------------

ANALYSIS_PROMPT = """Роль: Профессиональный организатор пространства.
Задача: Проанализируй фото комнаты и дай четкий план действий.
Язык: Строго русский. Не добавляй переводы на английский. Не пиши свои мысли в JSON.

Верни ОДИН JSON-объект такой формы:
{
  "roomType": "тип комнаты, одно-два слова",
  "clutterLevel": целое число от 0 до 100,
  "summary": "краткое резюме, максимум 2 предложения",
  "spaceUtilization": [{"name": "Мебель", "value": 40}, {"name": "Свободно", "value": 35}, {"name": "Хлам", "value": 25}],
  "actionItems": [
    {"id": "1", "title": "короткий заголовок", "description": "четкая инструкция",
     "difficulty": "Easy" | "Medium" | "Hard", "category": "Discard" | "Organize" | "Buy"}
  ],
  "aestheticSuggestions": ["совет по дизайну"]
}

Ограничения:
- difficulty строго одно из: Easy, Medium, Hard.
- category строго одно из: Discard, Organize, Buy.
- Только валидный JSON, без markdown и без ```.
- Только финальный результат."""

ANALYSIS_SYSTEM_INSTRUCTION = (
    "Ты строгий JSON-генератор. Верни валидный JSON на русском языке. "
    "Запрещено: писать рассуждения внутри строковых полей, добавлять английские "
    "переводы в скобках, добавлять префиксы вроде 'Description:'. Пиши кратко и по делу."
)

ANALYSIS_RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "roomType": types.Schema(type=types.Type.STRING, description="Тип комнаты (одно-два слова)"),
        "clutterLevel": types.Schema(type=types.Type.INTEGER, description="Число от 0 до 100"),
        "summary": types.Schema(type=types.Type.STRING, description="Резюме, максимум 2 предложения"),
        "spaceUtilization": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "name": types.Schema(type=types.Type.STRING),
                    "value": types.Schema(type=types.Type.INTEGER),
                },
                required=["name", "value"],
            ),
        ),
        "actionItems": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "id": types.Schema(type=types.Type.STRING),
                    "title": types.Schema(type=types.Type.STRING),
                    "description": types.Schema(type=types.Type.STRING),
                    "difficulty": types.Schema(type=types.Type.STRING, enum=["Easy", "Medium", "Hard"]),
                    "category": types.Schema(type=types.Type.STRING, enum=["Discard", "Organize", "Buy"]),
                },
                required=["id", "title", "description", "difficulty", "category"],
            ),
        ),
        "aestheticSuggestions": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(type=types.Type.STRING),
        ),
    },
    required=[
        "roomType",
        "clutterLevel",
        "summary",
        "spaceUtilization",
        "actionItems",
        "aestheticSuggestions",
    ],
)

# ---------------------------------------------------------------------------
# Чат
# ---------------------------------------------------------------------------

CHAT_SYSTEM_INSTRUCTION = (
    "Ты TidyAI, ассистент по организации пространства. Отвечай кратко и только на "
    "русском языке. Не используй markdown-разметку, если не просят."
)

SEED_USER_CAPTION = "Вот фото комнаты, которую я хочу организовать."
SEED_MODEL_ACK = "Понял. Я проанализировал изображение и готов помочь вам навести порядок."

WELCOME_MESSAGE = (
    "Я проанализировал вашу комнату! Задавайте любые вопросы по плану "
    "организации или попросите рекомендации товаров."
)

CHAT_EMPTY_REPLY = "Извините, я не смог сгенерировать ответ."
CHAT_ERROR_REPLY = (
    "Извините, произошла ошибка во время обработки. "
    "Возможно, сервис недоступен в вашем регионе."
)
CHAT_CONNECTION_APOLOGY = "Извините, возникла проблема с соединением. Попробуйте снова."
