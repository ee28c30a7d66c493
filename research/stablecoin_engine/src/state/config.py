"""Global risk configuration and its store"""
import logging
import threading
from dataclasses import dataclass, replace
from typing import Optional

from ..constants import (
    BPS_SCALE,
    MAX_BORROW_RATE_BPS,
    MAX_LIQUIDATION_BONUS_BPS,
    MIN_HEALTH_FACTOR_CEILING_BPS,
    MIN_HEALTH_FACTOR_FLOOR_BPS,
    U16_MAX,
    U64_MAX,
)
from ..errors import (
    BorrowRateTooHighError,
    ConfigAlreadyInitializedError,
    ConfigNotInitializedError,
    InvalidBpsError,
    InvalidSupplyCapError,
    LiquidationBonusTooHighError,
    LiquidationLtvMustBeGreaterThanMaxLtvError,
    MathOverflowError,
    MaxLtvMustBeLessThanLiquidationLtvError,
    MinHealthFactorTooHighError,
    MinHealthFactorTooLowError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Config:
    """Risk parameters of one deployment"""
    authority: str
    max_ltv_bps: int  # u16
    liquidation_ltv_bps: int  # u16
    liquidation_bonus_bps: int  # u16
    min_health_factor_bps: int  # u16
    borrow_rate_bps: int  # u16
    supply_cap: int  # u64
    paused: bool = False
    version: int = 0


def _require_u16(value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"bps value must be an integer, got {type(value).__name__}")
    if value < 0 or value > U16_MAX:
        raise MathOverflowError("bps value does not fit in u16")

def validate_ltv_bps(value: int) -> None:
    _require_u16(value)
    if not 0 < value <= BPS_SCALE:
        raise InvalidBpsError()

def validate_liquidation_bonus(value: int) -> None:
    _require_u16(value)
    if value > MAX_LIQUIDATION_BONUS_BPS:
        raise LiquidationBonusTooHighError()

def validate_min_health_factor(value: int) -> None:
    _require_u16(value)
    if value < MIN_HEALTH_FACTOR_FLOOR_BPS:
        raise MinHealthFactorTooLowError()
    if value > MIN_HEALTH_FACTOR_CEILING_BPS:
        raise MinHealthFactorTooHighError()

def validate_borrow_rate(value: int) -> None:
    _require_u16(value)
    if value > MAX_BORROW_RATE_BPS:
        raise BorrowRateTooHighError()

def validate_supply_cap(value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"supply cap must be an integer, got {type(value).__name__}")
    if value > U64_MAX:
        raise MathOverflowError("supply cap does not fit in u64")
    if value <= 0:
        raise InvalidSupplyCapError()

def validate_config(config: Config, max_ltv_changed: bool = True) -> None:
    """Check every field of a complete config

    ``max_ltv_changed`` picks which side of a broken LTV ordering is blamed.
    """
    validate_ltv_bps(config.max_ltv_bps)
    validate_ltv_bps(config.liquidation_ltv_bps)
    if config.max_ltv_bps >= config.liquidation_ltv_bps:
        if max_ltv_changed:
            raise MaxLtvMustBeLessThanLiquidationLtvError()
        raise LiquidationLtvMustBeGreaterThanMaxLtvError()
    validate_liquidation_bonus(config.liquidation_bonus_bps)
    validate_min_health_factor(config.min_health_factor_bps)
    validate_borrow_rate(config.borrow_rate_bps)
    validate_supply_cap(config.supply_cap)


class ConfigStore:
    """Holds the single Config record

    Readers get an immutable snapshot; writers replace the record under a
    lock and bump its version.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._config: Optional[Config] = None

    @property
    def initialized(self) -> bool:
        with self._lock:
            return self._config is not None

    def snapshot(self) -> Config:
        with self._lock:
            if self._config is None:
                raise ConfigNotInitializedError()
            return self._config

    def lock(self) -> threading.RLock:
        return self._lock

    def initialize(self, config: Config) -> Config:
        with self._lock:
            if self._config is not None:
                raise ConfigAlreadyInitializedError()
            self._config = replace(config, version=1)
            logger.info("Config initialized at version %d", self._config.version)
            return self._config

    def write(self, config: Config) -> Config:
        with self._lock:
            current = self.snapshot()
            self._config = replace(config, version=current.version + 1)
            logger.debug("Config written at version %d", self._config.version)
            return self._config
