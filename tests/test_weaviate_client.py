from unittest.mock import MagicMock

import pytest
import requests

from helpers import make_response, weaviate_payload, weaviate_record
from reply_helper.errors import NetworkError, SuggestionTimeoutError, UpstreamStatusError
from reply_helper.weaviate_client import WeaviateClient, extract_generated_text, extract_records


def _client(connection, response=None, side_effect=None):
    session = MagicMock()
    if side_effect is not None:
        session.post.side_effect = side_effect
    else:
        session.post.return_value = response
    return WeaviateClient(connection, session=session), session


def test_query_posts_graphql_with_headers(connection):
    client, session = _client(connection, make_response(payload=weaviate_payload([])))

    assert client.query({"query": "{ Get { Filip { my_reply } } }"}) == weaviate_payload([])
    session.post.assert_called_once_with(
        "https://example.weaviate.cloud/v1/graphql",
        headers={
            "Authorization": "Bearer search-key",
            "X-OpenAI-Api-Key": "model-key",
            "Content-Type": "application/json",
        },
        json={"query": "{ Get { Filip { my_reply } } }"},
        timeout=(5.0, 5.0),
    )


def test_timeout_is_distinguished(connection):
    client, _ = _client(connection, side_effect=requests.ReadTimeout("read timed out"))
    with pytest.raises(SuggestionTimeoutError):
        client.query({"query": "{}"})


def test_connect_timeout_is_a_timeout(connection):
    client, _ = _client(connection, side_effect=requests.ConnectTimeout("connect timed out"))
    with pytest.raises(SuggestionTimeoutError):
        client.query({"query": "{}"})


def test_connection_error_is_network_error(connection):
    client, _ = _client(connection, side_effect=requests.ConnectionError("Name or service not known"))
    with pytest.raises(NetworkError):
        client.query({"query": "{}"})


def test_non_2xx_is_status_error(connection):
    client, _ = _client(connection, make_response(status_code=401, payload={"error": "unauthorized"}))
    with pytest.raises(UpstreamStatusError) as exc:
        client.query({"query": "{}"})
    assert exc.value.status_code == 401
    assert "status 401" in str(exc.value)


def test_graphql_errors_are_status_errors(connection):
    payload = {"errors": [{"message": "Cannot query field \"foo\""}], "data": None}
    client, _ = _client(connection, make_response(payload=payload))
    with pytest.raises(UpstreamStatusError, match="Cannot query field"):
        client.query({"query": "{}"})


def test_non_json_body_is_status_error(connection):
    resp = make_response()
    resp.json.side_effect = ValueError("Expecting value")
    client, _ = _client(connection, resp)
    with pytest.raises(UpstreamStatusError):
        client.query({"query": "{}"})


def test_extract_records_and_generation():
    records = [
        weaviate_record("a", "first", 0.1, generated='{"answer": "Hi"}'),
        weaviate_record("b", "second", 0.2),
    ]
    payload = weaviate_payload(records)

    assert extract_records(payload, "Filip") == records
    assert extract_records(payload, "Other") == []
    assert extract_records({"data": None}, "Filip") == []
    assert extract_generated_text(records) == '{"answer": "Hi"}'


def test_extract_generation_single_result_and_missing():
    records = [{"_additional": {"generate": {"singleResult": "text"}}}]
    assert extract_generated_text(records) == "text"
    assert extract_generated_text([{"_additional": {"generate": {"groupedResult": None, "error": "quota"}}}]) is None
    assert extract_generated_text([]) is None


def test_timeout_applies_to_connect_and_response(connection):
    connection.timeout_ms = 1500
    client, session = _client(connection, make_response(payload=weaviate_payload([])))

    client.query({"query": "{}"})

    assert session.post.call_args.kwargs["timeout"] == (1.5, 1.5)
