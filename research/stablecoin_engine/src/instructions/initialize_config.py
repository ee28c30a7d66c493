"""Create the deployment's risk configuration"""
import logging

from ..state.config import Config, ConfigStore, validate_config
from ..errors import ConfigAlreadyInitializedError
from ..transaction import Transaction

logger = logging.getLogger(__name__)


def initialize_config(
    txn: Transaction,
    store: ConfigStore,
    authority: str,
    max_ltv_bps: int,
    liquidation_ltv_bps: int,
    liquidation_bonus_bps: int,
    min_health_factor_bps: int,
    borrow_rate_bps: int,
    supply_cap: int
) -> Config:
    """Validate every parameter and stage the first Config record

    The caller becomes the authority. Can only succeed once per store.
    """
    if store.initialized:
        raise ConfigAlreadyInitializedError()

    config = Config(
        authority=authority,
        max_ltv_bps=max_ltv_bps,
        liquidation_ltv_bps=liquidation_ltv_bps,
        liquidation_bonus_bps=liquidation_bonus_bps,
        min_health_factor_bps=min_health_factor_bps,
        borrow_rate_bps=borrow_rate_bps,
        supply_cap=supply_cap,
        paused=False,
    )
    validate_config(config, max_ltv_changed=False)

    txn.write_config(config, initial=True)
    logger.info(
        "Config initialized - Max LTV: %d | Liquidation LTV: %d",
        max_ltv_bps,
        liquidation_ltv_bps
    )
    return config
