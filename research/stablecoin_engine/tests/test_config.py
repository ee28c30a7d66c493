import pytest

from stablecoin_engine.src.errors import (
    BorrowRateTooHighError,
    ConfigAlreadyInitializedError,
    ConfigNotInitializedError,
    InvalidBpsError,
    InvalidSupplyCapError,
    LiquidationBonusTooHighError,
    LiquidationLtvMustBeGreaterThanMaxLtvError,
    LtvOrderingError,
    MathOverflowError,
    MaxLtvMustBeLessThanLiquidationLtvError,
    MinHealthFactorTooHighError,
    MinHealthFactorTooLowError,
    UnauthorizedError,
)

from conftest import AUTHORITY


def test_initialize_config_scenario(engine, scenario_params):
    config = engine.initialize_config(AUTHORITY, **scenario_params)

    assert config.authority == AUTHORITY
    assert config.max_ltv_bps == 7000
    assert config.liquidation_ltv_bps == 8000
    assert config.liquidation_bonus_bps == 500
    assert config.min_health_factor_bps == 11000
    assert config.borrow_rate_bps == 1000
    assert config.supply_cap == 1_000_000
    assert config.paused is False
    assert config.version == 1


def test_initialize_rejects_max_ltv_at_liquidation_ltv(engine, scenario_params):
    with pytest.raises(LtvOrderingError) as excinfo:
        engine.initialize_config(AUTHORITY, **dict(scenario_params, max_ltv_bps=8000))

    assert excinfo.value.code == "LiquidationLtvMustBeGreaterThanMaxLtv"
    assert not engine.configs.initialized


@pytest.mark.parametrize(
    "override, error",
    [
        ({"max_ltv_bps": 0}, InvalidBpsError),
        ({"liquidation_ltv_bps": 10_001}, InvalidBpsError),
        ({"max_ltv_bps": 9000}, LiquidationLtvMustBeGreaterThanMaxLtvError),
        ({"liquidation_bonus_bps": 2001}, LiquidationBonusTooHighError),
        ({"min_health_factor_bps": 9999}, MinHealthFactorTooLowError),
        ({"min_health_factor_bps": 20_001}, MinHealthFactorTooHighError),
        ({"borrow_rate_bps": 5001}, BorrowRateTooHighError),
        ({"supply_cap": 0}, InvalidSupplyCapError),
        ({"liquidation_bonus_bps": 70_000}, MathOverflowError),
    ],
)
def test_initialize_validation(engine, scenario_params, override, error):
    with pytest.raises(error):
        engine.initialize_config(AUTHORITY, **dict(scenario_params, **override))
    assert not engine.configs.initialized


def test_initialize_accepts_boundaries(engine):
    config = engine.initialize_config(
        AUTHORITY,
        max_ltv_bps=9999,
        liquidation_ltv_bps=10_000,
        liquidation_bonus_bps=2000,
        min_health_factor_bps=20_000,
        borrow_rate_bps=5000,
        supply_cap=2**64 - 1,
    )
    assert config.liquidation_ltv_bps == 10_000


def test_initialize_only_once(engine, scenario_params):
    engine.initialize_config(AUTHORITY, **scenario_params)
    with pytest.raises(ConfigAlreadyInitializedError):
        engine.initialize_config("someone-else", **scenario_params)
    assert engine.config().authority == AUTHORITY


def test_operations_require_initialized_config(engine):
    with pytest.raises(ConfigNotInitializedError):
        engine.config()
    with pytest.raises(ConfigNotInitializedError):
        engine.deposit("alice", 100, 0)


def test_update_config_requires_authority(engine, scenario_params):
    engine.initialize_config(AUTHORITY, **scenario_params)
    with pytest.raises(UnauthorizedError):
        engine.update_config("mallory", paused=True)
    assert engine.config().paused is False


def test_update_config_changes_only_supplied_fields(engine, scenario_params):
    engine.initialize_config(AUTHORITY, **scenario_params)

    config = engine.update_config(AUTHORITY, borrow_rate_bps=250, supply_cap=5_000_000)

    assert config.borrow_rate_bps == 250
    assert config.supply_cap == 5_000_000
    assert config.max_ltv_bps == 7000
    assert config.liquidation_bonus_bps == 500
    assert config.version == 2


def test_update_config_rejects_max_ltv_at_stored_liquidation_ltv(engine, scenario_params):
    engine.initialize_config(AUTHORITY, **scenario_params)
    with pytest.raises(MaxLtvMustBeLessThanLiquidationLtvError):
        engine.update_config(AUTHORITY, max_ltv_bps=8000)


def test_update_config_rejects_liquidation_ltv_below_stored_max(engine, scenario_params):
    engine.initialize_config(AUTHORITY, **scenario_params)
    with pytest.raises(LiquidationLtvMustBeGreaterThanMaxLtvError):
        engine.update_config(AUTHORITY, liquidation_ltv_bps=7000)


def test_update_config_checks_ordering_on_merged_values(engine, scenario_params):
    engine.initialize_config(AUTHORITY, **scenario_params)

    # each value passes against the stored counterpart, together they cross
    with pytest.raises(LtvOrderingError):
        engine.update_config(AUTHORITY, max_ltv_bps=7900, liquidation_ltv_bps=7100)

    config = engine.config()
    assert (config.max_ltv_bps, config.liquidation_ltv_bps) == (7000, 8000)
    assert config.version == 1


def test_update_config_can_move_both_ltvs_together(engine, scenario_params):
    engine.initialize_config(AUTHORITY, **scenario_params)

    # raising max past the stored liquidation LTV is fine when liquidation moves too
    config = engine.update_config(AUTHORITY, max_ltv_bps=8500, liquidation_ltv_bps=9000)

    assert (config.max_ltv_bps, config.liquidation_ltv_bps) == (8500, 9000)


@pytest.mark.parametrize(
    "change, error",
    [
        ({"liquidation_bonus_bps": 2500}, LiquidationBonusTooHighError),
        ({"min_health_factor_bps": 5000}, MinHealthFactorTooLowError),
        ({"min_health_factor_bps": 25_000}, MinHealthFactorTooHighError),
        ({"borrow_rate_bps": 9000}, BorrowRateTooHighError),
        ({"supply_cap": 0}, InvalidSupplyCapError),
        ({"max_ltv_bps": 0}, InvalidBpsError),
    ],
)
def test_update_config_validation(engine, scenario_params, change, error):
    engine.initialize_config(AUTHORITY, **scenario_params)
    before = engine.config()

    with pytest.raises(error):
        engine.update_config(AUTHORITY, **change)

    assert engine.config() == before


def test_pause_and_unpause(engine, scenario_params):
    engine.initialize_config(AUTHORITY, **scenario_params)

    assert engine.update_config(AUTHORITY, paused=True).paused is True
    assert engine.update_config(AUTHORITY, paused=False).paused is False
    assert engine.config().version == 3


def test_config_snapshot_is_immutable(engine, scenario_params):
    engine.initialize_config(AUTHORITY, **scenario_params)
    snapshot = engine.config()

    engine.update_config(AUTHORITY, borrow_rate_bps=0)

    assert snapshot.borrow_rate_bps == 1000
    with pytest.raises(AttributeError):
        snapshot.borrow_rate_bps = 0
