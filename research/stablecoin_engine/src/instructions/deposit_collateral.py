"""Deposit collateral and mint stablecoin against it"""
import logging
from typing import Tuple

from ..constants import U64_MAX
from ..context import OperationContext
from ..errors import (
    ExceedsMaxLtvError,
    InvalidAmountError,
    SupplyCapExceededError,
    SystemPausedError,
)
from ..math_utils import checked_add, require_u64
from ..oracle import Price
from ..state.position import Position

logger = logging.getLogger(__name__)


def transfer_collateral(ctx: OperationContext, owner: str, collateral_amount: int) -> None:
    vault = ctx.vault
    authority = ctx.vault_authority(owner)
    ctx.txn.stage(
        f"collateral {owner} -> vault {collateral_amount}",
        lambda: vault.deposit(owner, collateral_amount),
        lambda: vault.withdraw(owner, owner, collateral_amount, authority),
    )

def fetch_price_and_accrue_debt(ctx: OperationContext, position: Position) -> Price:
    price = ctx.fetch_price()

    if position.active:
        position.debt_shares = ctx.risk.accrued_debt(position, ctx.now)

    return price

def validate_borrow_limits(
    ctx: OperationContext,
    position: Position,
    collateral_amount: int,
    mint_amount: int,
    price: Price
) -> Tuple[int, int, int]:
    """Returns (collateral_value_usd, max_borrowable, new_total_debt)"""
    risk = ctx.risk
    new_collateral = checked_add(position.deposited_collateral, collateral_amount, bound=U64_MAX)

    collateral_value = risk.collateral_value(new_collateral, price)
    max_borrowable = risk.max_borrowable(collateral_value)

    new_total_debt = checked_add(position.debt_shares, mint_amount, bound=U64_MAX)
    if new_total_debt > max_borrowable:
        raise ExceedsMaxLtvError(f"Debt {new_total_debt} exceeds max borrowable {max_borrowable}")

    # Supply cap check
    new_supply = checked_add(ctx.tokens.total_supply(), mint_amount, bound=U64_MAX)
    if new_supply > ctx.config.supply_cap:
        raise SupplyCapExceededError(f"Supply {new_supply} exceeds cap {ctx.config.supply_cap}")

    return collateral_value, max_borrowable, new_total_debt

def mint_stablecoin_to_user(ctx: OperationContext, owner: str, amount: int) -> None:
    if amount == 0:
        return
    tokens = ctx.tokens
    authority = ctx.mint_authority
    ctx.txn.stage(
        f"mint {amount} -> {owner}",
        lambda: tokens.mint(owner, amount, authority),
        lambda: tokens.burn(owner, amount),
    )

def update_position_after_deposit(
    ctx: OperationContext,
    position: Position,
    collateral_amount: int,
    new_total_debt: int,
    collateral_value: int
) -> int:
    """Stage the new position and check its health; returns the health factor"""
    position.add_collateral(collateral_amount)
    position.debt_shares = new_total_debt
    position.last_update_timestamp = ctx.now
    position.active = True
    ctx.txn.write_position(position)

    return ctx.risk.require_healthy(collateral_value, new_total_debt)


def deposit_collateral(
    ctx: OperationContext,
    position: Position,
    collateral_amount: int,
    mint_amount: int
) -> Position:
    """Lock ``collateral_amount`` and mint ``mint_amount`` to the position owner

    ``position`` is a working copy; the committed record only changes if every
    check, including the final health factor, passes.
    """
    require_u64(collateral_amount, "collateral_amount")
    require_u64(mint_amount, "mint_amount")
    if ctx.config.paused:
        raise SystemPausedError()
    if collateral_amount == 0:
        raise InvalidAmountError()

    owner = position.owner

    # Transfer collateral from user -> vault
    transfer_collateral(ctx, owner, collateral_amount)

    # Fetch oracle price & accrue interest on debt
    price = fetch_price_and_accrue_debt(ctx, position)

    # Validate LTV, supply cap, debt limits
    collateral_value, _max_borrowable, new_total_debt = validate_borrow_limits(
        ctx, position, collateral_amount, mint_amount, price
    )

    mint_stablecoin_to_user(ctx, owner, mint_amount)

    # Update user position and check health factor
    factor = update_position_after_deposit(
        ctx, position, collateral_amount, new_total_debt, collateral_value
    )

    logger.debug("Deposited %d, minted %d, total debt %d", collateral_amount, mint_amount, new_total_debt)
    logger.debug("Health factor: %d", factor)
    return position
