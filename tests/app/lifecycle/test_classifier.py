"""Testes do classificador de desconexões."""

from __future__ import annotations

import pytest

from app.lifecycle import (
    DEFAULT_POLICY,
    DisconnectCause,
    DisconnectPolicy,
    RecoveryAction,
    classify,
    is_logged_out,
)
from app.lifecycle.classifier import normalize_code


class TestNormalizeCode:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (None, None),
            (True, None),
            ("", None),
            ("  ", None),
            (405, 405),
            ("405", 405),
            (405.0, 405),
            (4.5, "4.5"),
            (" 428 ", 428),
            ("-1", -1),
            ("loggedOut", "loggedOut"),
        ],
    )
    def test_normalize(self, raw, expected) -> None:
        assert normalize_code(raw) == expected


class TestClassify:
    """Tabela de vereditos."""

    @pytest.mark.parametrize(
        "code", [401, 401.0, "401", "loggedOut", "logged_out", "LOGGED_OUT"]
    )
    def test_logged_out_is_no_retry(self, code) -> None:
        verdict = classify(code)

        assert is_logged_out(code) is True
        assert verdict.cause == DisconnectCause.LOGGED_OUT
        assert verdict.action == RecoveryAction.NO_RETRY
        assert verdict.delay_seconds is None
        assert verdict.should_retry is False
        assert verdict.raw_code == code

    @pytest.mark.parametrize("code", [405, 405.0, "405"])
    def test_405_invalidates_and_retries_after_60s(self, code) -> None:
        verdict = classify(code)

        assert verdict.cause == DisconnectCause.RATE_LIMITED
        assert verdict.action == RecoveryAction.INVALIDATE_AND_RETRY_AFTER
        assert verdict.delay_seconds == 60.0
        assert verdict.should_invalidate is True

    @pytest.mark.parametrize("code", [408, 428, 440, 500, 503, 515, "connectionLost", 0])
    def test_other_codes_retry_after_5s(self, code) -> None:
        verdict = classify(code)

        assert verdict.cause == DisconnectCause.TRANSIENT
        assert verdict.action == RecoveryAction.RETRY_AFTER
        assert verdict.delay_seconds == 5.0
        assert verdict.should_invalidate is False

    @pytest.mark.parametrize("code", [None, "", False])
    def test_missing_code_is_unknown_retry_after_5s(self, code) -> None:
        verdict = classify(code)

        assert verdict.cause == DisconnectCause.UNKNOWN
        assert verdict.action == RecoveryAction.RETRY_AFTER
        assert verdict.delay_seconds == 5.0

    def test_classify_is_deterministic(self) -> None:
        assert classify(428) == classify(428)
        assert DEFAULT_POLICY.classify(405) == classify(405)

    def test_custom_policy_delays(self) -> None:
        policy = DisconnectPolicy(retry_delay_seconds=1.5, invalidate_retry_delay_seconds=30)

        assert policy.classify(500).delay_seconds == 1.5
        assert policy.classify(405).delay_seconds == 30
        assert policy.classify(401).delay_seconds is None

    def test_verdict_log_dict(self) -> None:
        assert classify(405).to_log_dict() == {
            "cause": "RATE_LIMITED",
            "action": "INVALIDATE_AND_RETRY_AFTER",
            "delay_seconds": 60.0,
            "raw_code": 405,
        }
