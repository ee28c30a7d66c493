"""Repay an underwater position's debt in exchange for its collateral"""
import logging
from dataclasses import dataclass

from ..context import OperationContext
from ..errors import (
    InsufficientBalanceError,
    InsufficientCollateralError,
    PositionNotActiveError,
    PositionNotLiquidatableError,
    SystemPausedError,
)
from ..math_utils import liquidation_amounts
from ..state.position import Position

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiquidationResult:
    owner: str
    liquidator: str
    debt_repaid: int
    collateral_seized: int
    collateral_returned: int
    ltv_bps: int


def liquidate(ctx: OperationContext, position: Position, liquidator: str) -> LiquidationResult:
    """Liquidate ``position`` in full

    The liquidator burns the whole accrued debt and receives collateral worth
    the debt plus the liquidation bonus; whatever is left goes back to the
    owner and the position is cleared.
    """
    if ctx.config.paused:
        raise SystemPausedError()
    if not position.active:
        raise PositionNotActiveError()

    risk = ctx.risk
    owner = position.owner

    # 1) Get oracle price
    price = ctx.fetch_price()

    # 2) Accrue interest
    debt = risk.accrued_debt(position, ctx.now)
    position.debt_shares = debt

    # 3) Compute collateral value
    collateral_value = risk.collateral_value(position.deposited_collateral, price)

    # 4) Check LTV
    current_ltv = risk.ltv_bps(debt, collateral_value)
    if debt == 0 or current_ltv < ctx.config.liquidation_ltv_bps:
        raise PositionNotLiquidatableError(
            f"LTV {current_ltv} below liquidation threshold {ctx.config.liquidation_ltv_bps}"
        )

    # 5) Compute liquidation amounts
    seize, remaining = liquidation_amounts(
        debt,
        position.deposited_collateral,
        ctx.config.liquidation_bonus_bps,
        price.price,
        price.exponent
    )

    # 6) Ensure liquidator can burn the full debt
    tokens = ctx.tokens
    if tokens.balance_of(liquidator) < debt:
        raise InsufficientBalanceError(f"Liquidator must cover the full debt of {debt}")

    # 7) Burn stablecoin
    mint_authority = ctx.mint_authority
    ctx.txn.stage(
        f"burn {debt} <- {liquidator}",
        lambda: tokens.burn(liquidator, debt),
        lambda: tokens.mint(liquidator, debt, mint_authority),
    )

    # 8) Transfer seized collateral to liquidator
    vault = ctx.vault
    vault_authority = ctx.vault_authority(owner)
    vault_balance = vault.balance_of(owner)
    if vault_balance < seize:
        raise InsufficientCollateralError("Vault cannot cover the seized collateral")
    if seize > 0:
        ctx.txn.stage(
            f"collateral vault {owner} -> {liquidator} {seize}",
            lambda: vault.withdraw(owner, liquidator, seize, vault_authority),
            lambda: vault.deposit(owner, seize, source=liquidator),
        )

    # 9) Return remainder to borrower, capped by what the vault still holds
    returned = min(remaining, vault_balance - seize)
    if returned > 0:
        ctx.txn.stage(
            f"collateral vault {owner} -> {owner} {returned}",
            lambda: vault.withdraw(owner, owner, returned, vault_authority),
            lambda: vault.deposit(owner, returned),
        )

    # 10) Clear position
    position.clear(ctx.now)
    ctx.txn.write_position(position)

    return LiquidationResult(
        owner=owner,
        liquidator=liquidator,
        debt_repaid=debt,
        collateral_seized=seize,
        collateral_returned=returned,
        ltv_bps=current_ltv,
    )
