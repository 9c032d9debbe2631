"""Unit tests for the recovery parser and its strategies."""

import pytest

from tool_results.core.types import Failure, PayloadKind, Success
from tool_results.diagnostics import DiagnosticLevel
from tool_results.pipeline.base import RecoveryStrategy
from tool_results.pipeline.recovery import (
    BASE64_IMAGE_MESSAGE,
    BASIC_MESSAGE,
    DEFAULT_MESSAGE,
    FALLBACK_MESSAGE,
    IMAGE_MESSAGE,
    RecoveryParser,
    default_strategies,
    fallback_payload,
    recover_basic_result,
    recover_image_result,
    repair_and_parse,
    repair_content,
    strict_parse,
)

pytestmark = pytest.mark.unit


class TestStrictParse:
    def test_parses_complete_object(self):
        result = strict_parse('{"success": true, "message": "Done", "data": {"a": 1}}')
        assert isinstance(result, Success)
        payload = result.value
        assert payload.success is True
        assert payload.message == "Done"
        assert dict(payload.data) == {"a": 1}
        assert payload.kind is PayloadKind.STRUCTURED

    def test_missing_fields_get_defaults(self):
        result = strict_parse("{}")
        assert isinstance(result, Success)
        assert result.value.success is False
        assert result.value.message == DEFAULT_MESSAGE
        assert dict(result.value.data) == {}

    def test_only_literal_true_counts_as_success(self):
        result = strict_parse('{"success": "yes", "message": "x"}')
        assert isinstance(result, Success)
        assert result.value.success is False

    def test_non_object_data_is_wrapped(self):
        result = strict_parse('{"success": true, "data": [1, 2]}')
        assert isinstance(result, Success)
        assert dict(result.value.data) == {"value": (1, 2)}

    @pytest.mark.parametrize("content", ["[1, 2]", '"text"', "42", "null"])
    def test_rejects_non_object_top_level(self, content):
        result = strict_parse(content)
        assert isinstance(result, Failure)
        assert result.error.strategy == "strict_parse"
        assert "not an object" in result.error.reason

    def test_reports_invalid_json(self):
        result = strict_parse('{"success": true,}')
        assert isinstance(result, Failure)
        assert result.error.reason.startswith("invalid JSON")

    def test_deep_nesting_is_a_failure_not_a_crash(self):
        result = strict_parse("[" * 200_000 + "]" * 200_000)
        assert isinstance(result, Failure)


class TestImageRecovery:
    def test_extracts_image_url_with_success_and_message(self):
        content = (
            '{"success": true, "message": "Made it", '
            '"image_url": "https://cdn.example.com/a.png", "data": {broken'
        )
        result = recover_image_result(content)
        assert isinstance(result, Success)
        payload = result.value
        assert payload.kind is PayloadKind.IMAGE
        assert payload.success is True
        assert payload.message == "Made it"
        assert payload.image_url == "https://cdn.example.com/a.png"

    def test_defaults_when_only_image_url_present(self):
        result = recover_image_result('"image_url": "https://x.example/i.png" ...')
        assert isinstance(result, Success)
        assert result.value.success is True
        assert result.value.message == IMAGE_MESSAGE

    def test_honors_explicit_false(self):
        result = recover_image_result(
            '{"success": false, "image_url": "https://x.example/i.png"'
        )
        assert isinstance(result, Success)
        assert result.value.success is False

    def test_recovers_bare_data_uri(self):
        result = recover_image_result("Here you go: data:image/png;base64,iVBORw0KGgo= enjoy")
        assert isinstance(result, Success)
        assert result.value.message == BASE64_IMAGE_MESSAGE
        assert result.value.image_url == "data:image/png;base64,iVBORw0KGgo="

    def test_declines_without_image(self):
        result = recover_image_result('{"success": true, "message": "no image"')
        assert isinstance(result, Failure)
        assert result.error.strategy == "image_recovery"


class TestBasicRecovery:
    def test_extracts_success_and_message(self):
        result = recover_basic_result('{"success": false, "message": "Quota hit", oops')
        assert isinstance(result, Success)
        assert result.value.success is False
        assert result.value.message == "Quota hit"
        assert result.value.kind is PayloadKind.BASIC
        assert dict(result.value.data) == {}

    def test_decodes_escaped_quotes_in_message(self):
        result = recover_basic_result(r'{"success": true, "message": "say \"hi\"", x')
        assert isinstance(result, Success)
        assert result.value.message == 'say "hi"'

    def test_default_message(self):
        result = recover_basic_result('"success": true')
        assert isinstance(result, Success)
        assert result.value.message == BASIC_MESSAGE

    def test_requires_success_literal(self):
        result = recover_basic_result('{"message": "no flag here"')
        assert isinstance(result, Failure)
        assert result.error.reason == "no success literal"

    @pytest.mark.parametrize(
        "content",
        [
            '{"success": true, "message": "Done",}',
            '{"success": true, "data": {"chart_data": [1, 2]}',
        ],
    )
    def test_declines_objects_repair_can_parse(self, content):
        result = recover_basic_result(content)
        assert isinstance(result, Failure)
        assert result.error.reason == "object is repairable, deferring to repair"


class TestSyntacticRepair:
    def test_removes_trailing_commas(self):
        assert repair_content('{"a": [1, 2,], "b": 1,}') == '{"a": [1, 2], "b": 1}'

    def test_collapses_whitespace(self):
        assert repair_content('{\n  "a":\t1\n}') == '{ "a": 1 }'

    def test_appends_missing_closing_braces(self):
        assert repair_content('{"a": {"b": 1') == '{"a": {"b": 1}}'

    def test_never_removes_extra_closing_braces(self):
        assert repair_content('{"a": 1}}') == '{"a": 1}}'

    def test_repaired_content_is_parsed(self):
        result = repair_and_parse('{"message": "ok", "data": {"k": 1}')
        assert isinstance(result, Success)
        assert result.value.message == "ok"
        assert dict(result.value.data) == {"k": 1}

    def test_declines_when_nothing_to_repair(self):
        result = repair_and_parse("plain text")
        assert isinstance(result, Failure)
        assert result.error.reason == "no applicable repairs"

    def test_reports_still_invalid(self):
        result = repair_and_parse('{"a": nope,}')
        assert isinstance(result, Failure)
        assert result.error.reason.startswith("still invalid")


def test_fallback_payload_keeps_bounded_preview():
    payload = fallback_payload("x" * 500, preview_chars=200)
    assert payload.success is False
    assert payload.message == FALLBACK_MESSAGE
    assert payload.kind is PayloadKind.FALLBACK
    assert payload.data["raw_content"] == "x" * 200
    assert payload.data["recovery_attempted"] is True


def test_default_strategy_order():
    assert [s.name for s in default_strategies()] == [
        "strict_parse",
        "image_recovery",
        "basic_recovery",
        "syntactic_repair",
    ]


def test_recovery_strategy_rejects_bad_definitions():
    with pytest.raises(ValueError, match="name"):
        RecoveryStrategy("", strict_parse)
    with pytest.raises(TypeError, match="attempt"):
        RecoveryStrategy("broken", "not callable")  # type: ignore[arg-type]


class TestRecoveryParser:
    def test_first_successful_strategy_wins(self, diagnostic_logger):
        outcome = RecoveryParser(logger=diagnostic_logger).parse(
            '{"success": true, "message": "ok"}'
        )
        assert outcome.strategy == "strict_parse"
        assert not outcome.exhausted
        assert [(a.strategy, a.successful) for a in outcome.attempts] == [
            ("strict_parse", True)
        ]
        assert outcome.warnings == ()

    def test_failed_attempts_become_warnings(self, diagnostic_logger):
        outcome = RecoveryParser(logger=diagnostic_logger).parse(
            '{"success": true, "message": "Done",}'
        )
        assert outcome.strategy == "syntactic_repair"
        assert [a.strategy for a in outcome.attempts] == [
            "strict_parse",
            "image_recovery",
            "basic_recovery",
            "syntactic_repair",
        ]
        assert len(outcome.warnings) == 3
        assert outcome.warnings[0].startswith("strict_parse failed: invalid JSON")
        assert outcome.warnings[2] == (
            "basic_recovery failed: object is repairable, deferring to repair"
        )

    def test_repair_reached_when_earlier_strategies_decline(self, diagnostic_logger):
        outcome = RecoveryParser(logger=diagnostic_logger).parse(
            '{"message": "ok", "data": {"k": 1}'
        )
        assert outcome.strategy == "syntactic_repair"
        assert outcome.payload.success is False
        assert outcome.payload.message == "ok"

    def test_over_closed_braces_end_in_fallback(self, diagnostic_logger):
        outcome = RecoveryParser(logger=diagnostic_logger).parse('{"message": "x"}}')
        assert outcome.exhausted

    def test_fallback_when_everything_fails(self, diagnostic_logger, memory_sink):
        parser = RecoveryParser(raw_content_preview_chars=10, logger=diagnostic_logger)
        outcome = parser.parse("not json at all")

        assert outcome.exhausted
        assert outcome.payload.message == FALLBACK_MESSAGE
        assert outcome.payload.data["raw_content"] == "not json a"
        assert [a.successful for a in outcome.attempts] == [
            False,
            False,
            False,
            False,
            True,
        ]
        assert len(outcome.warnings) == 4
        assert "All recovery strategies failed, using fallback" in memory_sink.messages(
            level=DiagnosticLevel.WARN
        )

    def test_raising_strategy_is_isolated(self, diagnostic_logger):
        def explode(_content):
            raise RuntimeError("boom")

        parser = RecoveryParser(
            [RecoveryStrategy("explode", explode), *default_strategies()],
            logger=diagnostic_logger,
        )
        outcome = parser.parse('{"success": true}')

        assert outcome.strategy == "strict_parse"
        assert outcome.attempts[0].successful is False
        assert outcome.attempts[0].error == "unexpected RuntimeError: boom"

    def test_strategy_returning_garbage_is_a_failure(self, diagnostic_logger):
        parser = RecoveryParser(
            [RecoveryStrategy("garbage", lambda _c: None)], logger=diagnostic_logger
        )
        outcome = parser.parse("{}")
        assert outcome.exhausted
        assert outcome.attempts[0].error == "returned NoneType"

    def test_trace_entry_carries_bounded_preview(self, diagnostic_logger, memory_sink):
        RecoveryParser(log_preview_chars=5, logger=diagnostic_logger).parse("abcdefghij")
        (entry,) = [e for e in memory_sink.entries if e.message == "Starting content parsing"]
        assert entry.level is DiagnosticLevel.TRACE
        assert entry.fields["content_preview"] == "abcde"
        assert entry.fields["content_length"] == 10
