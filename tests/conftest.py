import pytest

from reply_helper.config import ConfigProvider, ConnectionConfig, Settings, reset_provider
from reply_helper.credentials import CredentialStore


@pytest.fixture(autouse=True)
def _fresh_provider():
    reset_provider()
    yield
    reset_provider()


@pytest.fixture
def connection():
    return ConnectionConfig(
        endpoint_url="https://example.weaviate.cloud",
        search_api_key="search-key",
        model_api_key="model-key",
        timeout_ms=5000,
        collection="Filip",
        limit=4,
    )


@pytest.fixture
def settings(connection):
    return Settings(connection=connection, store=CredentialStore())


@pytest.fixture
def provider(settings):
    return ConfigProvider(settings)
