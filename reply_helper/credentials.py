import logging
from typing import Callable

import requests
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


class ApiCredential(BaseModel):
    """A row of the backend credentials table."""

    id: str | int | None = None
    service_name: str
    api_key: str | None = None
    additional_keys: dict[str, str | None] | None = None
    created_at: str | None = None
    updated_at: str | None = None


class CredentialStore(BaseModel):
    url: str = ""
    anon_key: str = ""
    table: str = "api_credentials"
    timeout_s: float = 10.0

    @property
    def configured(self) -> bool:
        return bool(self.url and self.anon_key)


def store_get(store: CredentialStore, path: str, params: dict, session=None):
    headers = {
        "apikey": store.anon_key,
        "Authorization": f"Bearer {store.anon_key}",
        "Accept": "application/json",
    }
    http = session or requests
    r = http.get(f"{store.url.rstrip('/')}{path}", headers=headers, params=params, timeout=store.timeout_s)
    r.raise_for_status()
    return r.json()


def get_service_credentials(
    service_name: str,
    store: CredentialStore,
    on_warning: Callable[[str], None] | None = None,
    session=None,
) -> ApiCredential | None:
    """
    Fetch the credential row for service_name.

    Returns None when no row exists or the lookup fails; failures are logged
    and reported through on_warning, never raised.
    """

    def warn(message: str):
        if on_warning is not None:
            on_warning(message)

    if not store.configured:
        logger.warning("Credential store not configured; skipping lookup for %s", service_name)
        warn("Credential store is not configured; using local configuration.")
        return None

    logger.info("Fetching credentials for service: %s", service_name)
    try:
        rows = store_get(
            store,
            f"/rest/v1/{store.table}",
            {"service_name": f"eq.{service_name}", "select": "*", "limit": "2"},
            session=session,
        )
    except requests.RequestException as e:
        logger.error("Error fetching %s credentials: %s", service_name, e)
        warn(f"Failed to fetch API credentials: {e}")
        return None
    except ValueError as e:
        logger.error("Credential store returned invalid JSON for %s: %s", service_name, e)
        warn("Failed to fetch API credentials: invalid response from credential store")
        return None

    if not isinstance(rows, list):
        logger.error("Unexpected credential store payload for %s: %r", service_name, type(rows))
        warn("Failed to fetch API credentials: unexpected response from credential store")
        return None

    if not rows:
        logger.warning("No credentials found for service: %s", service_name)
        return None

    if len(rows) > 1:
        logger.error("Multiple credential rows found for service: %s", service_name)
        warn(f"Failed to fetch API credentials: multiple rows for {service_name}")
        return None

    try:
        credential = ApiCredential.model_validate(rows[0])
    except ValidationError as e:
        logger.error("Invalid credential row for %s: %s", service_name, e)
        warn("Failed to fetch API credentials: invalid credential row")
        return None

    logger.info("Successfully retrieved credentials for %s", service_name)
    return credential
