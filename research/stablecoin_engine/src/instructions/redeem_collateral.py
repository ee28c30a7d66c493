"""Burn stablecoin and/or withdraw collateral from a position"""
import logging

from ..context import OperationContext
from ..errors import (
    InsufficientBalanceError,
    InsufficientCollateralError,
    InvalidAmountError,
    SystemPausedError,
)
from ..math_utils import require_u64
from ..state.position import Position

logger = logging.getLogger(__name__)


def accrue_existing_debt(ctx: OperationContext, position: Position) -> int:
    position.debt_shares = ctx.risk.accrued_debt(position, ctx.now)
    return position.debt_shares

def burn_stablecoin(ctx: OperationContext, position: Position, amount: int) -> None:
    """Burn from the owner's balance and reduce debt"""
    owner = position.owner
    tokens = ctx.tokens
    if tokens.balance_of(owner) < amount:
        raise InsufficientBalanceError()

    authority = ctx.mint_authority
    ctx.txn.stage(
        f"burn {amount} <- {owner}",
        lambda: tokens.burn(owner, amount),
        lambda: tokens.mint(owner, amount, authority),
    )
    position.repay(amount)

def withdraw_collateral(ctx: OperationContext, position: Position, amount: int) -> None:
    owner = position.owner
    if position.deposited_collateral < amount:
        raise InsufficientCollateralError()

    vault = ctx.vault
    if vault.balance_of(owner) < amount:
        raise InsufficientCollateralError("Vault balance is below the withdrawal")

    authority = ctx.vault_authority(owner)
    ctx.txn.stage(
        f"collateral vault {owner} -> {owner} {amount}",
        lambda: vault.withdraw(owner, owner, amount, authority),
        lambda: vault.deposit(owner, amount),
    )
    position.remove_collateral(amount)

def check_health_factor(ctx: OperationContext, position: Position) -> int:
    """Verify health factor if debt remains"""
    risk = ctx.risk
    if position.debt_shares == 0:
        return risk.health_factor(0, 0)

    price = ctx.fetch_price()
    collateral_value = risk.collateral_value(position.deposited_collateral, price)
    factor = risk.require_healthy(collateral_value, position.debt_shares)

    logger.debug("Health factor after withdrawal: %d", factor)
    return factor


def redeem_collateral(
    ctx: OperationContext,
    position: Position,
    burn_amount: int,
    withdraw_amount: int
) -> Position:
    require_u64(burn_amount, "burn_amount")
    require_u64(withdraw_amount, "withdraw_amount")
    if ctx.config.paused:
        raise SystemPausedError()
    if burn_amount == 0 and withdraw_amount == 0:
        raise InvalidAmountError()

    # 1) Accrue interest
    accrue_existing_debt(ctx, position)

    # 2) Burn tokens if requested
    if burn_amount > 0:
        burn_stablecoin(ctx, position, burn_amount)

    # 3) Withdraw collateral if requested
    if withdraw_amount > 0:
        withdraw_collateral(ctx, position, withdraw_amount)

    # 4) Check health factor if debt remains
    check_health_factor(ctx, position)

    # 5) Update timestamp
    position.last_update_timestamp = ctx.now

    # 6) Close position if empty
    if position.close_if_clear():
        logger.debug("Position %s closed", position.owner)

    ctx.txn.write_position(position)
    return position
