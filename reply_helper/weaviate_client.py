import logging
from typing import Any

import requests

from reply_helper.config import ConnectionConfig
from reply_helper.errors import NetworkError, SuggestionTimeoutError, UpstreamStatusError

logger = logging.getLogger(__name__)


class WeaviateClient:
    def __init__(self, config: ConnectionConfig, session=None):
        self.config = config
        self.session = session or requests

    @property
    def graphql_url(self) -> str:
        return f"{self.config.endpoint_url.rstrip('/')}/v1/graphql"

    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.search_api_key}",
            "X-OpenAI-Api-Key": self.config.model_api_key,
            "Content-Type": "application/json",
        }

    def query(self, body: dict) -> dict:
        """
        POST a GraphQL body and return the decoded response.

        timeout_ms bounds the connect and the wait for the response separately,
        so the call is abandoned after at most twice timeout_ms.
        """
        timeout_s = self.config.timeout_ms / 1000
        logger.info("Querying %s (timeout %.1fs)", self.graphql_url, timeout_s)
        try:
            r = self.session.post(self.graphql_url, headers=self.headers(), json=body, timeout=(timeout_s, timeout_s))
        except requests.Timeout as e:
            raise SuggestionTimeoutError(f"Request timed out after {self.config.timeout_ms} ms") from e
        except requests.ConnectionError as e:
            raise NetworkError(f"Could not reach vector search service: {e}") from e

        if not 200 <= r.status_code < 300:
            raise UpstreamStatusError(r.status_code, f"API request failed with status {r.status_code}")

        try:
            payload = r.json()
        except ValueError as e:
            raise UpstreamStatusError(r.status_code, "API returned a non-JSON response") from e

        errors = payload.get("errors") if isinstance(payload, dict) else None
        if errors:
            messages = "; ".join(str(err.get("message", err)) if isinstance(err, dict) else str(err) for err in errors)
            raise UpstreamStatusError(r.status_code, f"GraphQL query failed: {messages}")

        return payload


def extract_records(payload: dict, collection: str) -> list[dict[str, Any]]:
    records = ((payload or {}).get("data") or {}).get("Get", {}) or {}
    records = records.get(collection) or []
    return [rec for rec in records if isinstance(rec, dict)]


def extract_generated_text(records: list[dict[str, Any]]) -> str | None:
    """The grouped generation is attached to the first record only."""
    if not records:
        return None
    generate = (records[0].get("_additional") or {}).get("generate") or {}
    if generate.get("error"):
        logger.warning("Generation returned an error: %s", generate["error"])
    return generate.get("groupedResult") or generate.get("singleResult")
