import logging

from reply_helper.config import ConfigProvider, get_provider
from reply_helper.errors import ConfigurationError, NetworkError, SuggestionTimeoutError, UpstreamStatusError
from reply_helper.fallback import generate_fallback
from reply_helper.parsing import parse_generated_reply
from reply_helper.query import build_request_body
from reply_helper.schemas import HistoricalMatch, Notice, RequestOutcome
from reply_helper.weaviate_client import WeaviateClient, extract_generated_text, extract_records

logger = logging.getLogger(__name__)

EMPTY_INPUT_MESSAGE = "Please enter a customer email"
TIMEOUT_MESSAGE = "The AI took too long to respond. Please try again with a simpler query."
NETWORK_NOTICE = "Could not reach the vector search service, using demo data instead"
DEMO_MODE_NOTICE = "Running in local development mode, using demo data"


def _fallback_outcome(inbound_email: str, notices: list[Notice], error: str | None = None) -> RequestOutcome:
    reply, matches = generate_fallback(inbound_email)
    return RequestOutcome(
        suggestion=reply,
        historical_matches=matches,
        error=error,
        used_fallback=True,
        notices=notices,
    )


def _live_outcome(payload: dict, collection: str, notices: list[Notice]) -> RequestOutcome:
    records = extract_records(payload, collection)
    matches = [HistoricalMatch.from_record(rec, i) for i, rec in enumerate(records)]
    logger.info("Processed historical emails: %d", len(matches))

    if not records:
        return RequestOutcome(used_fallback=False, notices=notices)

    return RequestOutcome(
        suggestion=parse_generated_reply(extract_generated_text(records)),
        historical_matches=matches,
        used_fallback=False,
        notices=notices,
    )


def suggest_reply(inbound_email: str, provider: ConfigProvider | None = None, session=None) -> RequestOutcome:
    """
    Suggest a reply to inbound_email from similar historical replies.

    Never raises: every failure ends in an outcome carrying the demo data,
    and, except for unreachable-service failures, an error message.
    """
    if not inbound_email or not inbound_email.strip():
        return RequestOutcome(error=EMPTY_INPUT_MESSAGE, notices=[Notice(level="error", message=EMPTY_INPUT_MESSAGE)])

    provider = provider or get_provider()
    notices: list[Notice] = []

    try:
        notices.extend(Notice(level="warning", message=w) for w in provider.refresh_config())
        config = provider.get_config()

        if provider.settings.is_development and provider.settings.demo_mode_in_development:
            logger.info("Development demo mode enabled; skipping live query")
            notices.append(Notice(level="info", message=DEMO_MODE_NOTICE))
            return _fallback_outcome(inbound_email, notices)

        missing = config.missing_keys()
        if missing:
            raise ConfigurationError(f"Missing configuration: {', '.join(missing)}")

        client = WeaviateClient(config, session=session)
        payload = client.query(build_request_body(inbound_email, config))
        return _live_outcome(payload, config.collection, notices)

    except SuggestionTimeoutError as e:
        logger.warning("Vector search timed out: %s", e)
        notices.append(Notice(level="error", message=TIMEOUT_MESSAGE))
        return _fallback_outcome(inbound_email, notices, error=TIMEOUT_MESSAGE)

    except NetworkError as e:
        logger.warning("Vector search unreachable, falling back to demo data: %s", e)
        notices.append(Notice(level="warning", message=NETWORK_NOTICE))
        return _fallback_outcome(inbound_email, notices)

    except (ConfigurationError, UpstreamStatusError) as e:
        logger.error("Suggestion failed: %s", e)
        notices.append(Notice(level="error", message=f"Error: {e}"))
        return _fallback_outcome(inbound_email, notices, error=str(e))

    except Exception as e:
        logger.exception("Unexpected error while querying vector search")
        message = str(e) or "An unexpected error occurred"
        notices.append(Notice(level="error", message=f"Error: {message}"))
        return _fallback_outcome(inbound_email, notices, error=message)

