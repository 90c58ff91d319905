from urllib.parse import urlencode

import pytest

from loopback_oauth.handler import evaluate_callback
from loopback_oauth.outcome import CallbackErrorKind, Failure, Success

STATE = "xyz-State-123"


def query(**params) -> str:
    return urlencode(params)


def test_code_with_matching_state_succeeds():
    outcome = evaluate_callback(query(code="ABC123", state=STATE, scope="openid offline"), STATE)

    assert outcome == Success("ABC123")
    assert outcome.is_success


def test_missing_code():
    outcome = evaluate_callback(query(state=STATE), STATE)

    assert outcome == Failure(CallbackErrorKind.MISSING_AUTHORIZATION_CODE)
    assert not outcome.is_success


def test_empty_code_counts_as_missing():
    outcome = evaluate_callback(query(code="", state=STATE), STATE)

    assert outcome == Failure(CallbackErrorKind.MISSING_AUTHORIZATION_CODE)


def test_missing_state():
    assert evaluate_callback(query(code="ABC123"), STATE) == Failure(CallbackErrorKind.STATE_MISMATCH)


def test_state_comparison_is_case_sensitive():
    outcome = evaluate_callback(query(code="ABC123", state=STATE.upper()), STATE)

    assert outcome == Failure(CallbackErrorKind.STATE_MISMATCH)


def test_state_is_checked_before_code():
    assert evaluate_callback(query(state="other"), STATE).kind == CallbackErrorKind.STATE_MISMATCH


def test_non_ascii_state_does_not_raise():
    outcome = evaluate_callback(query(code="ABC123", state="état"), STATE)

    assert outcome == Failure(CallbackErrorKind.STATE_MISMATCH)


def test_provider_error_is_kept_as_detail():
    outcome = evaluate_callback(
        query(error="access_denied", error_description="User cancelled", state=STATE),
        STATE,
    )

    assert outcome.kind == CallbackErrorKind.MISSING_AUTHORIZATION_CODE
    assert outcome.detail == "access_denied: User cancelled"


def test_first_value_of_repeated_parameter_is_used():
    outcome = evaluate_callback(f"code=one&code=two&state={STATE}", STATE)

    assert outcome == Success("one")


def test_empty_query():
    assert evaluate_callback("", STATE) == Failure(CallbackErrorKind.STATE_MISMATCH)


def test_success_requires_a_code():
    with pytest.raises(ValueError):
        Success("")
