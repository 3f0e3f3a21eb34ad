import json

import pytest

from tidyai.services.text_cleanup import extract_json, sanitize_text


class TestSanitizeText:
    def test_removes_english_back_translation(self):
        assert sanitize_text("Кухня (Kitchen)") == "Кухня"

    def test_removes_bold_markers(self):
        assert sanitize_text("**Важно:** убрать стол") == "Важно: убрать стол"

    def test_parenthetical_and_bold_together(self):
        # скобки удаляются, кириллица внутри жирного текста остается
        assert sanitize_text("Кухня (Kitchen) **важно**") == "Кухня  важно"

    def test_truncates_leaked_reasoning(self):
        assert sanitize_text("План готов. Wait, I think it's actually a bedroom") == "План готов."

    def test_truncation_is_case_insensitive_and_spans_lines(self):
        assert sanitize_text("Готово. WAIT, no\nsecond line") == "Готово."

    @pytest.mark.parametrize("label", ["Description", "Translation", "Context", "Note", "Analysis", "note"])
    def test_strips_leading_label(self, label):
        assert sanitize_text(f"{label}:   Уютная спальня") == "Уютная спальня"

    def test_label_in_the_middle_is_kept(self):
        assert sanitize_text("Совет. Note: проветривайте") == "Совет. Note: проветривайте"

    def test_cyrillic_parenthetical_is_kept(self):
        assert sanitize_text("Стол (письменный)") == "Стол (письменный)"

    def test_parenthetical_with_punctuation(self):
        assert sanitize_text("Кружка (Mug & Pitcher: old-style.)") == "Кружка"

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_input(self, value):
        assert sanitize_text(value) == ""

    @pytest.mark.parametrize("value", [
        "Кухня (Kitchen) **важно**",
        "(Kit**chen) Гостиная",
        "  Note: стол",
        "Note: Analysis: двойная метка",
        "**Description:** текст (Text) Wait, more",
        "(a)(b) ((nested))",
        "Обычный текст без артефактов.",
    ])
    def test_idempotent(self, value):
        once = sanitize_text(value)
        assert sanitize_text(once) == once

    def test_rule_exposing_earlier_rule_is_fully_cleaned(self):
        assert sanitize_text("(Kit**chen) Гостиная") == "Гостиная"


class TestExtractJson:
    def test_fenced_json(self):
        assert extract_json('```json\n{"a":1}\n```') == '{"a":1}'

    def test_fence_without_language(self):
        assert extract_json('```\n{"a": [1, 2]}\n```') == '{"a": [1, 2]}'

    def test_no_braces_returns_text_unchanged(self):
        assert extract_json("no json here") == "no json here"

    def test_leading_and_trailing_prose(self):
        text = 'Вот результат: {"roomType": "Кухня"} Надеюсь, помог!'
        assert json.loads(extract_json(text)) == {"roomType": "Кухня"}

    def test_bare_object(self):
        assert extract_json('{"a": {"b": 2}}') == '{"a": {"b": 2}}'

    def test_spans_first_to_last_brace(self):
        # стратегия "первая { - последняя }" захватывает оба фрагмента
        assert extract_json('{"a": 1} и {"b": 2}') == '{"a": 1} и {"b": 2}'

    def test_empty_input(self):
        assert extract_json(None) == ""
