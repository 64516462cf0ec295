import pytest

from scam_detector.config import Settings, get_settings


@pytest.fixture
def settings() -> Settings:
    return Settings(
        goldrush_api_url="https://goldrush.test/v1",
        goldrush_api_key="test-key",
        page_size=2,
        max_pages=5,
        openai_api_key=None,
    )


@pytest.fixture(autouse=True)
def _fresh_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
