"""
Tests for the ResponseParser — raw model text → StructuredUpdate.

Covers:
  - Well-formed responses (with and without code fences)
  - Fallback on malformed JSON, wrong shapes and empty messages
  - Lenient handling inside an otherwise valid payload
"""

import json

from epiguard.tracker.models import RiskLevel, StructuredUpdate
from epiguard.tracker.parser import parse_model_response, strip_code_fence

from conftest import model_reply


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Well-formed responses
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestValidResponses:

    def test_full_payload(self):
        raw = model_reply(
            message="Sorry to hear about the headache.",
            symptoms=[("Headache", "Moderate")],
            risk_level="Moderate",
            add=[("Headache", "Moderate")],
            update=[("dizziness", "Low")],
            remove=["fatigue"],
        )
        update = parse_model_response(raw)

        assert update.message == "Sorry to hear about the headache."
        assert [(s.name, s.severity) for s in update.symptoms] == [("Headache", "Moderate")]
        assert update.risk_level == RiskLevel.MODERATE
        assert update.symptom_actions.add[0].name == "Headache"
        assert update.symptom_actions.update[0].severity == "Low"
        assert update.symptom_actions.remove == ["fatigue"]

    def test_code_fence_is_stripped(self):
        raw = "```json\n" + model_reply(message="Fenced reply") + "\n```"
        update = parse_model_response(raw)
        assert update.message == "Fenced reply"

    def test_strip_code_fence_leaves_plain_json(self):
        assert strip_code_fence('  {"message": "x"} ') == '{"message": "x"}'

    def test_single_line_fence_is_stripped(self):
        raw = "```json " + model_reply(message="One-liner") + "```"
        assert parse_model_response(raw).message == "One-liner"

    def test_fence_without_language_tag(self):
        assert strip_code_fence('```\n{"message": "x"}\n```') == '{"message": "x"}'

    def test_missing_risk_level_is_absent(self):
        update = parse_model_response(model_reply(risk_level=None))
        assert update.risk_level is None

    def test_risk_level_case_is_normalised(self):
        update = parse_model_response(model_reply(risk_level="high"))
        assert update.risk_level == RiskLevel.HIGH

    def test_unknown_risk_level_treated_as_absent(self):
        update = parse_model_response(model_reply(risk_level="Critical"))
        assert update.message == "Thanks for letting me know."
        assert update.risk_level is None

    def test_message_only_payload(self):
        update = parse_model_response(json.dumps({"message": "Hello!"}))
        assert update.message == "Hello!"
        assert update.symptoms == []
        assert update.symptom_actions.is_empty()
        assert update.is_empty()

    def test_null_collections_become_empty(self):
        raw = json.dumps({"message": "ok", "symptoms": None, "symptomActions": None})
        update = parse_model_response(raw)
        assert update.symptoms == []
        assert update.symptom_actions.is_empty()

    def test_blank_or_malformed_symptom_entries_dropped(self):
        raw = json.dumps({
            "message": "ok",
            "symptoms": [
                {"symptom": "  ", "severity": "Low"},
                "nausea",
                {"severity": "High"},
                {"symptom": " Nausea ", "severity": "Low"},
            ],
            "symptomActions": {"remove": ["", None, "Cough"]},
        })
        update = parse_model_response(raw)
        assert [s.name for s in update.symptoms] == ["Nausea"]
        assert update.symptom_actions.remove == ["Cough"]

    def test_missing_severity_defaults_to_blank(self):
        raw = json.dumps({"message": "ok", "symptoms": [{"symptom": "cough"}]})
        update = parse_model_response(raw)
        assert update.symptoms[0].severity == ""


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Fallback
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def _assert_fallback(update: StructuredUpdate, raw: str):
    assert update.message == raw
    assert update.symptoms == []
    assert update.risk_level == RiskLevel.LOW
    assert update.symptom_actions.is_empty()


class TestFallback:
    """Anything unusable degrades to a plain-text reply, never an error."""

    def test_plain_prose(self):
        raw = "I'm sorry you're feeling unwell. Can you tell me more?"
        _assert_fallback(parse_model_response(raw), raw)

    def test_truncated_json(self):
        raw = '{"message": "Hello", "symptoms": ['
        _assert_fallback(parse_model_response(raw), raw)

    def test_missing_message(self):
        raw = json.dumps({"symptoms": [], "riskLevel": "High"})
        _assert_fallback(parse_model_response(raw), raw)

    def test_empty_message(self):
        raw = json.dumps({"message": "   ", "riskLevel": "High"})
        _assert_fallback(parse_model_response(raw), raw)

    def test_non_string_message(self):
        raw = json.dumps({"message": 42})
        _assert_fallback(parse_model_response(raw), raw)

    def test_json_array(self):
        raw = json.dumps([{"message": "hi"}])
        _assert_fallback(parse_model_response(raw), raw)

    def test_symptoms_not_a_list(self):
        raw = json.dumps({"message": "hi", "symptoms": "headache"})
        _assert_fallback(parse_model_response(raw), raw)

    def test_empty_text(self):
        _assert_fallback(parse_model_response(""), "")

    def test_none(self):
        _assert_fallback(parse_model_response(None), "")

    def test_raw_text_kept_unchanged(self):
        raw = "  spaced   reply \n"
        assert parse_model_response(raw).message == raw

    def test_deeply_nested_json(self):
        raw = '{"message": "hi", "x": ' + "[" * 100000 + "]" * 100000 + "}"
        _assert_fallback(parse_model_response(raw), raw)
