"""
Connection configuration for the vector-search service.

Values start from the process environment (a local .env is loaded first) and
can be overwritten at runtime from the backend credentials table. The result
is cached for the life of the process.
"""
import logging
import os
import threading
from concurrent.futures import Future

from dotenv import load_dotenv
from pydantic import BaseModel

from reply_helper.credentials import CredentialStore, get_service_credentials

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30000
DEVELOPMENT_ENVS = ("development", "dev", "local")
DEFAULT_RETURN_FIELDS = ("replying_to", "my_reply", "type", "replying_to_thread", "category")


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", name, os.getenv(name))
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", name, os.getenv(name))
        return default


def _env_list(name: str, default: tuple[str, ...]) -> list[str]:
    raw = os.getenv(name, "")
    items = [item.strip() for item in raw.split(",") if item.strip()]
    return items or list(default)


class ConnectionConfig(BaseModel):
    endpoint_url: str = ""
    search_api_key: str = ""
    model_api_key: str = ""
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    collection: str = "Filip"
    target_vector: str = "replying_to_vector"
    limit: int = 20
    max_distance: float = 0.75
    category: str = ""
    # Properties selected from the collection; must all be declared in its schema.
    return_fields: list[str] = list(DEFAULT_RETURN_FIELDS)

    def missing_keys(self) -> list[str]:
        return [
            name
            for name in ("endpoint_url", "search_api_key", "model_api_key")
            if not getattr(self, name)
        ]


class Settings(BaseModel):
    connection: ConnectionConfig
    store: CredentialStore
    credentials_service: str = "weaviate"
    app_env: str = ""
    demo_mode_in_development: bool = False

    @property
    def is_development(self) -> bool:
        return self.app_env.strip().lower() in DEVELOPMENT_ENVS

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            connection=ConnectionConfig(
                endpoint_url=os.getenv("WEAVIATE_URL", ""),
                search_api_key=os.getenv("WEAVIATE_API_KEY", ""),
                model_api_key=os.getenv("OPENAI_API_KEY", ""),
                timeout_ms=_env_int("API_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
                collection=os.getenv("WEAVIATE_COLLECTION", "Filip"),
                target_vector=os.getenv("WEAVIATE_TARGET_VECTOR", "replying_to_vector"),
                limit=_env_int("WEAVIATE_LIMIT", 20),
                max_distance=_env_float("WEAVIATE_MAX_DISTANCE", 0.75),
                category=os.getenv("WEAVIATE_CATEGORY", ""),
                return_fields=_env_list("WEAVIATE_RETURN_FIELDS", DEFAULT_RETURN_FIELDS),
            ),
            store=CredentialStore(
                url=os.getenv("SUPABASE_URL", ""),
                anon_key=os.getenv("SUPABASE_ANON_KEY", ""),
                table=os.getenv("CREDENTIALS_TABLE", "api_credentials"),
            ),
            credentials_service=os.getenv("CREDENTIALS_SERVICE", "weaviate"),
            app_env=os.getenv("APP_ENV", ""),
            demo_mode_in_development=_env_bool("DEMO_MODE_IN_DEVELOPMENT"),
        )


class ConfigProvider:
    """Process-wide cache of the ConnectionConfig."""

    def __init__(self, settings: Settings | None = None, session=None):
        self._settings = settings
        self._session = session
        self._config: ConnectionConfig | None = None
        self._lock = threading.Lock()
        self._inflight: Future | None = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = Settings.from_env()
        return self._settings

    def get_config(self) -> ConnectionConfig:
        with self._lock:
            if self._config is None:
                self._config = self.settings.connection.model_copy()
            return self._config

    def refresh_config(self) -> list[str]:
        """
        Overwrite cached secrets from the credentials table.

        Best effort: on any failure the cached values stay as they were.
        Callers arriving while a refresh is running wait for that refresh
        instead of starting their own. Returns the user-facing warnings
        produced by the refresh that served this call.
        """
        with self._lock:
            pending = self._inflight
            if pending is None:
                pending = self._inflight = Future()
                owner = True
            else:
                owner = False

        if not owner:
            return list(pending.result())

        warnings: list[str] = []
        try:
            self._refresh(warnings.append)
        except Exception as e:
            logger.exception("Configuration refresh failed: %s", e)
            warnings.append("Could not refresh API configuration; using cached values.")
        finally:
            with self._lock:
                self._inflight = None
            pending.set_result(tuple(warnings))
        return warnings

    def _refresh(self, on_warning):
        service = self.settings.credentials_service
        credential = get_service_credentials(
            service,
            self.settings.store,
            on_warning=on_warning,
            session=self._session,
        )
        if credential is None:
            logger.warning("No %s credentials available; keeping cached configuration", service)
            return

        extra = credential.additional_keys or {}
        updates = {}
        if credential.api_key:
            updates["search_api_key"] = credential.api_key
        if extra.get("openai_api_key"):
            updates["model_api_key"] = extra["openai_api_key"]
        if extra.get("url"):
            updates["endpoint_url"] = extra["url"]

        current = self.get_config()
        with self._lock:
            self._config = current.model_copy(update=updates)
        logger.info("Configuration refreshed from credential store (%s)", ", ".join(sorted(updates)) or "no fields")


_provider: ConfigProvider | None = None
_provider_lock = threading.Lock()


def get_provider() -> ConfigProvider:
    global _provider
    with _provider_lock:
        if _provider is None:
            _provider = ConfigProvider()
        return _provider


def reset_provider():
    global _provider
    with _provider_lock:
        _provider = None
