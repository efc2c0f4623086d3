import pytest
import pytest_asyncio

from swr_cachex.cache import SWRCache
from swr_cachex.proxy import CacheProxy


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def swr_cache(clock: FakeClock):
    cache = SWRCache(clock=clock, name="test")
    yield cache
    await cache.wait_idle()


@pytest.fixture(autouse=True)
def reset_proxy():
    yield
    CacheProxy.set_cache(None)
