from __future__ import annotations

import pytest

from aipm.errors import SchemaError
from aipm.gates.parsers import extract_json
from aipm.gates.validation import load_schema, validate_reply

from conftest import ANALYSIS_REPLY, DOCUMENT_REPLY, PROMPTS_REPLY, as_reply


class TestExtractJson:
    def test_plain_object(self) -> None:
        assert extract_json('{"a": 1}') == {"a": 1}

    def test_fenced_block(self) -> None:
        raw = '```json\n{"questions": []}\n```'
        assert extract_json(raw) == {"questions": []}

    def test_preamble_and_trailer(self) -> None:
        raw = '以下是结果：{"prompts": [], "estimatedTime": "1周"} 希望有帮助'
        assert extract_json(raw) == {"prompts": [], "estimatedTime": "1周"}

    @pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_constants_are_rejected(self, constant) -> None:
        with pytest.raises(SchemaError):
            extract_json('{"confidence": ' + constant + "}")

    def test_too_deep_nesting_is_rejected(self) -> None:
        with pytest.raises(SchemaError, match="nested too deeply"):
            extract_json("[" * 100000 + "]" * 100000)

    def test_no_json(self) -> None:
        with pytest.raises(SchemaError) as excinfo:
            extract_json("no structured output here")
        assert "no structured output" in str(excinfo.value)


class TestValidateReply:
    @pytest.mark.parametrize(
        "payload,schema",
        [
            (ANALYSIS_REPLY, "analysis_result.schema.json"),
            (DOCUMENT_REPLY, "requirement_document.schema.json"),
            (PROMPTS_REPLY, "code_prompts.schema.json"),
        ],
    )
    def test_valid_replies(self, payload, schema) -> None:
        result = validate_reply(as_reply(payload), schema)
        assert result.ok
        assert result.payload == payload

    def test_missing_required_key(self) -> None:
        result = validate_reply('{"analysis": "x"}', "analysis_result.schema.json")
        assert not result.ok
        assert isinstance(result.error, SchemaError)
        assert "questions" in str(result.error)

    def test_array_is_not_an_object(self) -> None:
        result = validate_reply("[1, 2, 3]", "analysis_result.schema.json")
        assert not result.ok
        assert "list" in str(result.error)

    def test_error_names_the_failing_path(self) -> None:
        reply = {"document": [{"id": "overview", "title": "概述"}]}
        result = validate_reply(as_reply(reply), "requirement_document.schema.json")
        assert not result.ok
        assert str(result.error).startswith("document/0:")

    def test_null_optional_fields_are_allowed(self) -> None:
        reply = {"prompts": [], "techStack": None, "estimatedTime": None}
        assert validate_reply(as_reply(reply), "code_prompts.schema.json").ok

    def test_negative_word_count_is_rejected(self) -> None:
        reply = {"document": [], "metadata": {"wordCount": -1}}
        assert not validate_reply(as_reply(reply), "requirement_document.schema.json").ok

    def test_schemas_are_cached(self) -> None:
        assert load_schema("code_prompts.schema.json") is load_schema("code_prompts.schema.json")
