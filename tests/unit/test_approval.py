"""Tests for approval verdicts and invocation classification."""

from __future__ import annotations

import pytest

from tests.fixtures.transcripts import assistant, invocation_part, user
from toolgate.approval import (
    APPROVED,
    DENIED,
    DENIED_RESULT,
    NO_EXECUTOR_RESULT,
    NotDecided,
    PendingApproval,
    Resolved,
    Verdict,
    classify,
    parse_verdict,
    record_verdict,
)
from toolgate.transcript.models import ToolInvocation


class TestConstants:
    def test_wire_values(self):
        assert APPROVED == "Yes, confirmed."
        assert DENIED == "No, denied."
        assert Verdict("Yes, confirmed.") is Verdict.APPROVED

    def test_result_strings(self):
        assert DENIED_RESULT == "Error: User denied access to tool execution"
        assert NO_EXECUTOR_RESULT == "Error: No execute function found on tool"


class TestParseVerdict:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("Yes, confirmed.", Verdict.APPROVED),
            ("No, denied.", Verdict.DENIED),
            ("yes, confirmed.", None),
            ("Yes, confirmed", None),
            ("The weather in Paris is sunny", None),
            (None, None),
            ({"result": "Yes, confirmed."}, None),
            (1, None),
        ],
    )
    def test_parse(self, value, expected):
        assert parse_verdict(value) is expected


class TestClassify:
    def _inv(self, **kwargs):
        data = {"toolCallId": "c", "toolName": "t"}
        data.update(kwargs)
        return ToolInvocation.model_validate(data)

    def test_call_state_not_decided(self):
        assert classify(self._inv(state="call")) == NotDecided()

    def test_partial_call_not_decided(self):
        assert classify(self._inv(state="partial-call")) == NotDecided()

    def test_result_state_without_result_not_decided(self):
        assert classify(self._inv(state="result")) == NotDecided()

    def test_approved(self):
        status = classify(self._inv(state="result", result="Yes, confirmed."))
        assert status == PendingApproval(Verdict.APPROVED)

    def test_denied(self):
        status = classify(self._inv(state="result", result="No, denied."))
        assert status == PendingApproval(Verdict.DENIED)

    def test_real_output_resolved(self):
        status = classify(self._inv(state="result", result="The weather in Paris is sunny"))
        assert status == Resolved("The weather in Paris is sunny")

    def test_verdict_in_call_state_ignored(self):
        assert classify(self._inv(state="call", result="Yes, confirmed.")) == NotDecided()

    def test_structured_result_resolved(self):
        status = classify(self._inv(state="result", result={"temp": 20}))
        assert status == Resolved({"temp": 20})


class TestRecordVerdict:
    def test_writes_verdict_into_pending_call(self):
        transcript = [
            user("weather?"),
            assistant(invocation_part("c1", "getWeatherInformation", state="call")),
        ]
        updated = record_verdict(transcript, "c1", Verdict.APPROVED)
        inv = updated[-1].tool_invocations[0]
        assert inv.state == "result"
        assert inv.result == "Yes, confirmed."
        assert classify(inv) == PendingApproval(Verdict.APPROVED)
        assert transcript[-1].tool_invocations[0].state == "call"

    def test_only_matching_call_changes(self):
        transcript = [
            assistant(
                invocation_part("c1", "getWeatherInformation", state="call"),
                invocation_part("c2", "getWeatherInformation", state="call"),
            )
        ]
        updated = record_verdict(transcript, "c2", Verdict.DENIED)
        first, second = updated[-1].tool_invocations
        assert first.state == "call"
        assert second.result == "No, denied."

    def test_unknown_id_raises(self):
        transcript = [assistant(invocation_part("c1", "t", state="call"))]
        with pytest.raises(KeyError, match="c9"):
            record_verdict(transcript, "c9", Verdict.APPROVED)

    def test_already_decided_raises(self):
        transcript = [assistant(invocation_part("c1", "t", result="done"))]
        with pytest.raises(KeyError):
            record_verdict(transcript, "c1", Verdict.APPROVED)

    def test_empty_transcript_raises(self):
        with pytest.raises(KeyError):
            record_verdict([], "c1", Verdict.APPROVED)
