"""Authority-only changes to the risk configuration"""
import logging
from dataclasses import replace
from typing import Optional

from ..errors import UnauthorizedError
from ..state.config import (
    Config,
    validate_borrow_rate,
    validate_config,
    validate_liquidation_bonus,
    validate_ltv_bps,
    validate_min_health_factor,
    validate_supply_cap,
)
from ..transaction import Transaction

logger = logging.getLogger(__name__)


def update_config(
    txn: Transaction,
    current: Config,
    caller: str,
    max_ltv_bps: Optional[int] = None,
    liquidation_ltv_bps: Optional[int] = None,
    liquidation_bonus_bps: Optional[int] = None,
    min_health_factor_bps: Optional[int] = None,
    borrow_rate_bps: Optional[int] = None,
    supply_cap: Optional[int] = None,
    paused: Optional[bool] = None
) -> Config:
    """Stage a partial update of ``current``

    Each supplied field is range checked, then the LTV ordering is checked on
    the merged result so no combination of changes can leave
    max_ltv_bps >= liquidation_ltv_bps.
    """
    if caller != current.authority:
        raise UnauthorizedError()

    changes = {}
    if max_ltv_bps is not None:
        validate_ltv_bps(max_ltv_bps)
        changes["max_ltv_bps"] = max_ltv_bps
    if liquidation_ltv_bps is not None:
        validate_ltv_bps(liquidation_ltv_bps)
        changes["liquidation_ltv_bps"] = liquidation_ltv_bps
    if liquidation_bonus_bps is not None:
        validate_liquidation_bonus(liquidation_bonus_bps)
        changes["liquidation_bonus_bps"] = liquidation_bonus_bps
    if min_health_factor_bps is not None:
        validate_min_health_factor(min_health_factor_bps)
        changes["min_health_factor_bps"] = min_health_factor_bps
    if borrow_rate_bps is not None:
        validate_borrow_rate(borrow_rate_bps)
        changes["borrow_rate_bps"] = borrow_rate_bps
    if supply_cap is not None:
        validate_supply_cap(supply_cap)
        changes["supply_cap"] = supply_cap
    if paused is not None:
        changes["paused"] = bool(paused)

    updated = replace(current, **changes)
    validate_config(updated, max_ltv_changed=max_ltv_bps is not None)

    txn.write_config(updated)
    logger.info("Config update staged: %s", ", ".join(f"{k}={v}" for k, v in sorted(changes.items())) or "no changes")
    return updated
