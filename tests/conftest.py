import pytest

from daofutures_core import FuturesMarket, MarketConfig
from daofutures_core.storage import InMemoryStorage
from daofutures_core.transport import LocalAdapter

OWNER = "0xOwner"
PROVIDER = "0xProvider"


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def market(clock):
    cfg = MarketConfig(storage_provider="memory", cooldown_seconds=0, context_id="test-market")
    m = FuturesMarket(OWNER, config=cfg, storage=InMemoryStorage(), transport=LocalAdapter(), clock=clock)
    m.access.add_provider(OWNER, PROVIDER)
    return m
