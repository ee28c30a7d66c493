"""Solvency checks over one config snapshot"""
from dataclasses import dataclass

from .errors import HealthFactorTooLowError
from .math_utils import (
    accrue_interest,
    collateral_value_usd,
    health_factor,
    loan_to_value_bps,
    max_borrowable,
)
from .oracle import Price
from .state.config import Config
from .state.position import Position


@dataclass(frozen=True)
class RiskAssessment:
    """Risk figures of a position at one price and time"""
    owner: str
    debt: int
    collateral: int
    collateral_value_usd: int
    max_borrowable: int
    health_factor_bps: int
    ltv_bps: int
    liquidatable: bool
    healthy: bool


class RiskEngine:
    def __init__(self, config: Config):
        self.config = config

    def accrued_debt(self, position: Position, now: int) -> int:
        return accrue_interest(
            position.debt_shares,
            self.config.borrow_rate_bps,
            position.last_update_timestamp,
            now
        )

    def collateral_value(self, collateral: int, price: Price) -> int:
        return collateral_value_usd(collateral, price.price, price.exponent)

    def max_borrowable(self, collateral_value: int) -> int:
        return max_borrowable(collateral_value, self.config.max_ltv_bps)

    def health_factor(self, collateral_value: int, debt: int) -> int:
        return health_factor(collateral_value, debt, self.config.liquidation_ltv_bps)

    def ltv_bps(self, debt: int, collateral_value: int) -> int:
        return loan_to_value_bps(debt, collateral_value)

    def is_liquidatable(self, debt: int, collateral_value: int) -> bool:
        """At or past the liquidation LTV; the boundary is inclusive"""
        if debt == 0:
            return False
        return self.ltv_bps(debt, collateral_value) >= self.config.liquidation_ltv_bps

    def require_healthy(self, collateral_value: int, debt: int) -> int:
        factor = self.health_factor(collateral_value, debt)
        if factor < self.config.min_health_factor_bps:
            raise HealthFactorTooLowError(
                f"Health factor {factor} below minimum {self.config.min_health_factor_bps}"
            )
        return factor

    def assess(self, position: Position, price: Price, now: int) -> RiskAssessment:
        """Read-only risk snapshot with interest accrued up to ``now``"""
        debt = self.accrued_debt(position, now) if position.active else position.debt_shares
        value = self.collateral_value(position.deposited_collateral, price)
        factor = self.health_factor(value, debt)
        return RiskAssessment(
            owner=position.owner,
            debt=debt,
            collateral=position.deposited_collateral,
            collateral_value_usd=value,
            max_borrowable=self.max_borrowable(value),
            health_factor_bps=factor,
            ltv_bps=self.ltv_bps(debt, value),
            liquidatable=position.active and self.is_liquidatable(debt, value),
            healthy=factor >= self.config.min_health_factor_bps,
        )
