import logging

import pytest

from stablecoin_engine.src.collateral_vault import VaultAuthority
from stablecoin_engine.src.constants import SECONDS_PER_YEAR
from stablecoin_engine.src.errors import (
    InsufficientBalanceError,
    InsufficientCollateralError,
    PositionNotActiveError,
    PositionNotLiquidatableError,
    StalePriceError,
    SystemPausedError,
)

from conftest import AUTHORITY


@pytest.fixture
def market(engine, scenario_params):
    """alice: 100 collateral, 80 debt at $2; keeper holds 80 stablecoin"""
    engine.initialize_config(AUTHORITY, **dict(scenario_params, min_health_factor_bps=10_000, supply_cap=10**12))
    engine.oracle.set_price(2, 0)
    engine.vault.fund("alice", 100)
    engine.deposit("alice", 100, 80)
    engine.vault.fund("keeper", 1_000)
    engine.deposit("keeper", 1_000, 80)
    return engine


def test_liquidation_at_exact_threshold(market, clock):
    # collateral now worth $100 against 80 debt: LTV 8000 == liquidation LTV
    market.oracle.set_price(1, 0)

    result = market.liquidate("keeper", "alice")

    assert result.ltv_bps == 8000
    assert result.debt_repaid == 80
    assert result.collateral_seized == 84
    assert result.collateral_returned == 16

    position = market.position("alice")
    assert position.debt_shares == 0
    assert position.deposited_collateral == 0
    assert position.active is False
    assert position.last_update_timestamp == clock.now

    assert market.tokens.balance_of("keeper") == 0
    assert market.tokens.total_supply() == 80  # alice keeps what she minted
    assert market.vault.wallet_balance("keeper") == 84
    assert market.vault.wallet_balance("alice") == 16
    assert market.vault.balance_of("alice") == 0


def test_healthy_position_is_not_liquidatable(market):
    # $101 of collateral: LTV 7920
    market.oracle.set_price(101, -2)

    with pytest.raises(PositionNotLiquidatableError):
        market.liquidate("keeper", "alice")

    assert market.position("alice").active is True
    assert market.tokens.balance_of("keeper") == 80


def test_interest_can_push_a_position_over_the_threshold(market, clock):
    market.oracle.set_price(102, -2)
    with pytest.raises(PositionNotLiquidatableError):
        market.liquidate("keeper", "alice")

    clock.advance(SECONDS_PER_YEAR)
    market.oracle.set_price(102, -2)
    market.tokens.transfer("alice", "keeper", 8)

    result = market.liquidate("keeper", "alice")

    # 80 * 1.10 = 88 owed against $102: LTV 8627
    assert result.debt_repaid == 88
    assert result.ltv_bps == 8627
    assert (result.collateral_seized, result.collateral_returned) == (90, 10)
    assert market.tokens.balance_of("keeper") == 0


def test_liquidator_must_cover_full_debt(market):
    market.oracle.set_price(1, 0)
    market.tokens.transfer("keeper", "alice", 1)

    with pytest.raises(InsufficientBalanceError):
        market.liquidate("keeper", "alice")

    assert market.position("alice").debt_shares == 80
    assert market.vault.balance_of("alice") == 100


def test_underwater_position_gives_liquidator_everything(market):
    # $50 of collateral against 80 debt
    market.oracle.set_price(5, -1)

    result = market.liquidate("keeper", "alice")

    assert result.collateral_seized == 100
    assert result.collateral_returned == 0
    assert market.vault.wallet_balance("keeper") == 100


def test_worthless_collateral_is_liquidatable(market):
    market.oracle.set_price(1, -3)

    result = market.liquidate("keeper", "alice")

    assert result.ltv_bps == 2**16 - 1
    assert result.collateral_seized == 100


def test_inactive_or_unknown_position(market):
    with pytest.raises(PositionNotActiveError):
        market.liquidate("keeper", "nobody")

    market.redeem("alice", 80, 100)
    market.oracle.set_price(1, 0)
    with pytest.raises(PositionNotActiveError):
        market.liquidate("keeper", "alice")


def test_liquidation_when_paused(market):
    market.oracle.set_price(1, 0)
    market.update_config(AUTHORITY, paused=True)

    with pytest.raises(SystemPausedError):
        market.liquidate("keeper", "alice")


def test_liquidation_needs_fresh_price(market, clock):
    clock.advance(market.settings.max_price_age_seconds + 1)

    with pytest.raises(StalePriceError):
        market.liquidate("keeper", "alice")


def test_short_vault_aborts_without_burning(market):
    market.oracle.set_price(1, 0)
    market.vault.withdraw("alice", "thief", 50, VaultAuthority("test-deployment", "alice"))

    with pytest.raises(InsufficientCollateralError):
        market.liquidate("keeper", "alice")

    assert market.tokens.balance_of("keeper") == 80
    assert market.position("alice").active is True


def test_liquidatable_positions_reports_candidates(market):
    assert market.liquidatable_positions() == []

    market.oracle.set_price(1, 0)
    candidates = market.liquidatable_positions()

    assert [candidate.owner for candidate in candidates] == ["alice"]
    assert candidates[0].ltv_bps == 8000
    assert market.assess("keeper").liquidatable is False


def test_partially_drained_vault_caps_the_refund(market):
    market.vault.withdraw("alice", "thief", 10, VaultAuthority("test-deployment", "alice"))
    market.oracle.set_price(1, 0)

    result = market.liquidate("keeper", "alice")

    assert result.ltv_bps == 8000
    assert result.collateral_seized == 84
    assert result.collateral_returned == 6
    assert market.vault.balance_of("alice") == 0
    assert market.vault.wallet_balance("alice") == 6
    position = market.position("alice")
    assert (position.debt_shares, position.deposited_collateral, position.active) == (0, 0, False)


def test_scan_skips_positions_that_cannot_be_valued(engine, scenario_params, clock, caplog):
    engine.initialize_config(AUTHORITY, **scenario_params)
    engine.update_config(AUTHORITY, borrow_rate_bps=5_000)
    engine.oracle.set_price(1, 0)
    engine.vault.fund("alice", 100)
    engine.deposit("alice", 100, 70)
    engine.vault.fund("whale", 2**63)
    engine.deposit("whale", 2**63, 0)

    # whale collateral is now worth 2**64, past u64; alice owes 175 against $200
    clock.advance(3 * SECONDS_PER_YEAR)
    engine.oracle.set_price(2, 0)

    with caplog.at_level(logging.WARNING):
        candidates = engine.liquidatable_positions()

    assert [candidate.owner for candidate in candidates] == ["alice"]
    assert candidates[0].debt == 175
    assert candidates[0].ltv_bps == 8750
    assert "Skipping position whale" in caplog.text
