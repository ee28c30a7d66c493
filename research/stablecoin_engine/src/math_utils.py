"""Checked fixed point math for collateral valuation, interest and liquidation

Amounts are u64, basis points u16 and intermediates u128. Every step is
checked; a result that does not fit its width raises MathOverflowError
instead of wrapping.
"""
from typing import Tuple

from .constants import (
    BPS_SCALE,
    I32_MAX,
    I32_MIN,
    I64_MAX,
    I64_MIN,
    MAX_HEALTH_FACTOR,
    MAX_U128_DECIMAL_EXPONENT,
    MAX_LTV_BPS_SATURATED,
    SECONDS_PER_YEAR,
    U16_MAX,
    U64_MAX,
    U128_MAX,
)
from .errors import InvalidPriceError, InvalidTimestampError, MathOverflowError


def checked_add(a: int, b: int, bound: int = U128_MAX) -> int:
    """Add with overflow checking"""
    result = a + b
    if result > bound or result < 0:
        raise MathOverflowError("Arithmetic overflow in addition")
    return result

def checked_sub(a: int, b: int) -> int:
    """Subtract with underflow checking"""
    result = a - b
    if result < 0:
        raise MathOverflowError("Arithmetic underflow in subtraction")
    return result

def checked_mul(a: int, b: int, bound: int = U128_MAX) -> int:
    """Multiply with overflow checking"""
    result = a * b
    if result > bound or result < 0:
        raise MathOverflowError("Arithmetic overflow in multiplication")
    return result

def checked_div(a: int, b: int) -> int:
    """Divide with overflow checking"""
    if b == 0:
        raise MathOverflowError("Division by zero")
    return a // b

def to_u64(value: int) -> int:
    if value < 0 or value > U64_MAX:
        raise MathOverflowError("Value does not fit in u64")
    return value

def to_u16(value: int) -> int:
    if value < 0 or value > U16_MAX:
        raise MathOverflowError("Value does not fit in u16")
    return value

def require_u64(value: int, name: str = "value") -> int:
    """Reject anything that is not a u64 integer argument"""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0 or value > U64_MAX:
        raise MathOverflowError(f"{name} does not fit in u64")
    return value

def require_price_fields(price: int, exponent: int, timestamp: int) -> None:
    """Check an oracle price against i64/i32 widths"""
    if not I64_MIN <= price <= I64_MAX:
        raise InvalidPriceError("Price mantissa does not fit in i64")
    if not I32_MIN <= exponent <= I32_MAX:
        raise InvalidPriceError("Price exponent does not fit in i32")
    if not I64_MIN <= timestamp <= I64_MAX:
        raise InvalidPriceError("Price timestamp does not fit in i64")


def collateral_value_usd(amount: int, price: int, exponent: int) -> int:
    """Value of ``amount`` raw collateral units at ``price * 10**exponent``

    Negative exponents floor-divide, so fractional dollars are dropped in
    favour of the protocol.
    """
    if price <= 0:
        raise InvalidPriceError()

    raw_value = checked_mul(amount, price)
    if raw_value == 0:
        return 0

    # scale factors past u128 either overflow or floor the value to zero
    if exponent > MAX_U128_DECIMAL_EXPONENT:
        raise MathOverflowError("Price exponent overflows u128")
    if exponent < -MAX_U128_DECIMAL_EXPONENT:
        return 0

    if exponent < 0:
        adjusted_value = checked_div(raw_value, 10 ** (-exponent))
    else:
        adjusted_value = checked_mul(raw_value, 10 ** exponent)

    return to_u64(adjusted_value)

def max_borrowable(collateral_value: int, max_ltv_bps: int) -> int:
    """Largest debt a collateral value supports at ``max_ltv_bps``"""
    max_debt = checked_div(checked_mul(collateral_value, max_ltv_bps), BPS_SCALE)
    return to_u64(max_debt)

def accrue_interest(debt: int, rate_bps: int, t_prev: int, t_now: int) -> int:
    """Simple (non compounding) interest between two timestamps

    interest = debt * rate_bps * elapsed / (10000 * SECONDS_PER_YEAR)

    Floor division, so accrued interest is biased slightly downward.
    """
    if debt == 0:
        return 0

    if t_now < t_prev:
        raise InvalidTimestampError()
    time_elapsed = t_now - t_prev

    if time_elapsed == 0:
        return debt

    interest = checked_mul(checked_mul(debt, rate_bps), time_elapsed)
    interest = checked_div(checked_div(interest, BPS_SCALE), SECONDS_PER_YEAR)

    return checked_add(debt, to_u64(interest), bound=U64_MAX)

def health_factor(collateral_value: int, debt: int, liquidation_ltv_bps: int) -> int:
    """liquidation_ltv * collateral_value / debt, saturating at u16::MAX"""
    if debt == 0:
        return MAX_HEALTH_FACTOR

    factor = checked_div(checked_mul(collateral_value, liquidation_ltv_bps), debt)
    return min(factor, MAX_HEALTH_FACTOR)

def loan_to_value_bps(debt: int, collateral_value: int) -> int:
    """Current LTV in bps, saturating at u16::MAX

    A position with debt and no collateral value is maximally underwater.
    """
    if debt == 0:
        return 0
    if collateral_value == 0:
        return MAX_LTV_BPS_SATURATED

    ltv = checked_div(checked_mul(debt, BPS_SCALE), collateral_value)
    return min(ltv, MAX_LTV_BPS_SATURATED)

def liquidation_amounts(
    debt: int,
    collateral_amount: int,
    bonus_bps: int,
    price: int,
    exponent: int
) -> Tuple[int, int]:
    """Split a position's collateral between the liquidator and the owner

    Returns:
        Tuple[seize, remaining] with seize + remaining == collateral_amount
    """
    collateral_value = collateral_value_usd(collateral_amount, price, exponent)

    # debt plus bonus, in USD
    bonus_scale = checked_add(BPS_SCALE, bonus_bps, bound=U16_MAX)
    debt_with_bonus = checked_div(checked_mul(debt, bonus_scale), BPS_SCALE)

    if collateral_value == 0:
        seize = collateral_amount
    else:
        # convert USD back to raw collateral units
        seize = checked_div(checked_mul(debt_with_bonus, collateral_amount), collateral_value)
        seize = min(to_u64(seize), collateral_amount)

    remaining = checked_sub(collateral_amount, seize)
    return seize, remaining
