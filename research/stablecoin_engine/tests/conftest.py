import pytest

from stablecoin_engine.src.engine import create_in_memory_engine

START_TIME = 1_700_000_000
AUTHORITY = "authority"


class FakeClock:
    """Settable unix clock shared by the engine and the mock oracle"""

    def __init__(self, now: int = START_TIME):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(clock):
    return create_in_memory_engine(config_key="test-deployment", clock=clock)


@pytest.fixture
def scenario_params():
    return dict(
        max_ltv_bps=7000,
        liquidation_ltv_bps=8000,
        liquidation_bonus_bps=500,
        min_health_factor_bps=11000,
        borrow_rate_bps=1000,
        supply_cap=1_000_000,
    )


@pytest.fixture
def live_engine(engine, scenario_params):
    """Initialized engine with a large supply cap and a $100 collateral price"""
    params = dict(scenario_params, supply_cap=10**15)
    engine.initialize_config(AUTHORITY, **params)
    engine.oracle.set_price(100, 0)
    return engine
