import pytest

from app.core.config import get_settings
from app.utils.rate_limit import rate_limiter


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    # Tests patch env vars per method; never leak a cached Settings (or rate-limit
    # buckets) from one test into the next.
    get_settings.cache_clear()
    rate_limiter.reset()
    yield
    get_settings.cache_clear()
    rate_limiter.reset()
