import json
from unittest.mock import MagicMock

import pytest
import requests

from helpers import make_response, weaviate_payload, weaviate_record
from reply_helper.config import ConfigProvider, ConnectionConfig, Settings
from reply_helper.credentials import CredentialStore
from reply_helper.fallback import generate_fallback
from reply_helper.orchestrator import (
    EMPTY_INPUT_MESSAGE,
    TIMEOUT_MESSAGE,
    suggest_reply,
)
from reply_helper.parsing import UNPARSEABLE_ANSWER

EMAIL = "Hi Cameron, we're already a B-Corp, is this any different?"

GENERATED = json.dumps(
    {
        "answer": "Hi there, yes it is different.",
        "source": "Reply to Dana about certification",
        "justification": "Reused the opening line.",
    }
)


def _session(response=None, side_effect=None):
    session = MagicMock()
    if side_effect is not None:
        session.post.side_effect = side_effect
    else:
        session.post.return_value = response
    return session


def _assert_fallback(outcome):
    reply, matches = generate_fallback(EMAIL)
    assert outcome.used_fallback is True
    assert outcome.suggestion == reply
    assert outcome.historical_matches == matches


def test_live_success(provider):
    records = [
        weaviate_record("a", "We are certified too.", 0.15, generated=GENERATED, customer_name="Dana", date="2024-01-09"),
        weaviate_record("b", "Happy to explain.", 0.3),
    ]
    session = _session(make_response(payload=weaviate_payload(records)))

    outcome = suggest_reply(EMAIL, provider=provider, session=session)

    assert outcome.error is None
    assert outcome.used_fallback is False
    assert outcome.suggestion.answer == "Hi there, yes it is different."
    assert outcome.suggestion.source == "Reply to Dana about certification"
    assert [m.id for m in outcome.historical_matches] == ["a", "b"]
    assert outcome.historical_matches[0].match_percentage == 85
    assert outcome.historical_matches[0].properties.customer_name == "Dana"

    body = session.post.call_args.kwargs["json"]
    assert json.dumps(EMAIL)[1:-1] in body["query"]


def test_zero_matches_is_not_an_error(provider):
    session = _session(make_response(payload=weaviate_payload([])))

    outcome = suggest_reply(EMAIL, provider=provider, session=session)

    assert outcome.suggestion is None
    assert outcome.historical_matches == []
    assert outcome.error is None
    assert outcome.used_fallback is False
    assert outcome.is_empty
    assert [n.message for n in outcome.notices] == ["Credential store is not configured; using local configuration."]


def test_unparseable_generation_uses_placeholder(provider):
    records = [weaviate_record("a", "reply", 0.2, generated="not json at all")]
    session = _session(make_response(payload=weaviate_payload(records)))

    outcome = suggest_reply(EMAIL, provider=provider, session=session)

    assert outcome.error is None
    assert outcome.used_fallback is False
    assert outcome.suggestion.answer == UNPARSEABLE_ANSWER
    assert len(outcome.historical_matches) == 1


def test_timeout_falls_back_with_message(provider):
    session = _session(side_effect=requests.ReadTimeout("timed out"))

    outcome = suggest_reply(EMAIL, provider=provider, session=session)

    assert outcome.error == TIMEOUT_MESSAGE
    _assert_fallback(outcome)


def test_network_failure_falls_back_without_error(provider):
    session = _session(side_effect=requests.ConnectionError("Failed to establish a new connection"))

    outcome = suggest_reply(EMAIL, provider=provider, session=session)

    assert outcome.error is None
    _assert_fallback(outcome)
    assert any(n.level == "warning" for n in outcome.notices)


def test_bad_status_falls_back_with_error(provider):
    session = _session(make_response(status_code=500, payload={"error": "boom"}))

    outcome = suggest_reply(EMAIL, provider=provider, session=session)

    assert outcome.error == "API request failed with status 500"
    _assert_fallback(outcome)


def test_unexpected_exception_falls_back(provider):
    session = _session(side_effect=RuntimeError("kaboom"))

    outcome = suggest_reply(EMAIL, provider=provider, session=session)

    assert outcome.error == "kaboom"
    _assert_fallback(outcome)


def test_malformed_payload_does_not_raise(provider):
    session = _session(make_response(payload={"data": {"Get": ["unexpected"]}}))

    outcome = suggest_reply(EMAIL, provider=provider, session=session)

    assert outcome.error
    _assert_fallback(outcome)


def test_missing_keys_fall_back_with_configuration_error():
    provider = ConfigProvider(Settings(connection=ConnectionConfig(), store=CredentialStore()))
    session = _session(make_response(payload=weaviate_payload([])))

    outcome = suggest_reply(EMAIL, provider=provider, session=session)

    session.post.assert_not_called()
    assert outcome.error.startswith("Missing configuration:")
    assert "search_api_key" in outcome.error
    _assert_fallback(outcome)
    assert "Credential store is not configured; using local configuration." in [n.message for n in outcome.notices]


def test_development_demo_mode_skips_live_call(connection):
    settings = Settings(
        connection=connection,
        store=CredentialStore(),
        app_env="local",
        demo_mode_in_development=True,
    )
    session = _session(make_response(payload=weaviate_payload([])))

    outcome = suggest_reply(EMAIL, provider=ConfigProvider(settings), session=session)

    session.post.assert_not_called()
    assert outcome.error is None
    _assert_fallback(outcome)


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_blank_input_is_rejected_without_calls(text, provider):
    session = _session(make_response(payload=weaviate_payload([])))

    outcome = suggest_reply(text, provider=provider, session=session)

    session.post.assert_not_called()
    assert outcome.error == EMPTY_INPUT_MESSAGE
    assert outcome.used_fallback is False


@pytest.mark.parametrize(
    "side_effect",
    [requests.Timeout("t"), requests.ConnectionError("c"), ValueError("v"), KeyError("k")],
)
def test_never_raises(side_effect, provider):
    outcome = suggest_reply(EMAIL, provider=provider, session=_session(side_effect=side_effect))
    assert outcome.used_fallback is True
    assert outcome.suggestion is not None
