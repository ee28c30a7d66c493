"""Public operation surface of the stablecoin engine

Each call snapshots the config once, takes the lock of the position it
mutates, stages its effects in a Transaction and commits only after every
check has passed.
"""
import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

from .collateral_vault import CollateralVault, InMemoryCollateralVault
from .context import OperationContext
from .errors import PositionNotActiveError, ProtocolError
from .instructions.deposit_collateral import deposit_collateral
from .instructions.initialize_config import initialize_config
from .instructions.liquidate import LiquidationResult, liquidate
from .instructions.redeem_collateral import redeem_collateral
from .instructions.update_config import update_config
from .oracle import MockPriceOracle, PricingOracle
from .risk_engine import RiskAssessment, RiskEngine
from .settings import EngineSettings
from .state.config import Config, ConfigStore
from .state.position import Position, PositionLedger
from .token_ledger import InMemoryTokenLedger, MintAuthority, TokenLedger
from .transaction import Transaction

logger = logging.getLogger(__name__)


class StablecoinEngine:
    def __init__(
        self,
        token_ledger: TokenLedger,
        vault: CollateralVault,
        oracle: PricingOracle,
        mint_authority: MintAuthority,
        settings: Optional[EngineSettings] = None,
        clock: Optional[Callable[[], int]] = None
    ):
        self.tokens = token_ledger
        self.vault = vault
        self.oracle = oracle
        self.mint_authority = mint_authority
        self.settings = settings or EngineSettings()
        self.clock = clock or (lambda: int(time.time()))
        self.configs = ConfigStore()
        self.positions = PositionLedger()
        self._supply_lock = threading.Lock()

    @property
    def config_key(self) -> str:
        return self.mint_authority.config_key

    def _transaction(self, label: str) -> Transaction:
        return Transaction(label, self.positions, self.configs)

    @contextmanager
    def _operation(self, label: str) -> Iterator[OperationContext]:
        with self._transaction(label) as txn:
            yield OperationContext(
                config=self.configs.snapshot(),
                now=self.clock(),
                txn=txn,
                tokens=self.tokens,
                vault=self.vault,
                oracle=self.oracle,
                mint_authority=self.mint_authority,
                config_key=self.config_key,
                max_price_age=self.settings.max_price_age_seconds,
                price_feed_id=self.settings.price_feed_id,
            )

    # Config admin

    def initialize_config(
        self,
        authority: str,
        max_ltv_bps: int,
        liquidation_ltv_bps: int,
        liquidation_bonus_bps: int,
        min_health_factor_bps: int,
        borrow_rate_bps: int,
        supply_cap: int
    ) -> Config:
        with self.configs.lock():
            with self._transaction("initialize_config") as txn:
                initialize_config(
                    txn,
                    self.configs,
                    authority,
                    max_ltv_bps,
                    liquidation_ltv_bps,
                    liquidation_bonus_bps,
                    min_health_factor_bps,
                    borrow_rate_bps,
                    supply_cap,
                )
            return self.configs.snapshot()

    def update_config(self, caller: str, **changes) -> Config:
        """Apply optional field changes; see instructions.update_config"""
        with self.configs.lock():
            with self._transaction("update_config") as txn:
                update_config(txn, self.configs.snapshot(), caller, **changes)
            config = self.configs.snapshot()
        logger.info("Config updated to version %d (paused=%s)", config.version, config.paused)
        return config

    def config(self) -> Config:
        return self.configs.snapshot()

    # Position operations

    def deposit(self, owner: str, collateral_amount: int, mint_amount: int) -> Position:
        with self.positions.lock(owner), self._supply_lock:
            with self._operation("deposit") as ctx:
                position = deposit_collateral(
                    ctx, self.positions.get_or_new(owner), collateral_amount, mint_amount
                )
        logger.info(
            "Deposited %d, minted %d for %s (collateral=%d debt=%d)",
            collateral_amount,
            mint_amount,
            owner,
            position.deposited_collateral,
            position.debt_shares,
        )
        return position

    def redeem(self, owner: str, burn_amount: int, withdraw_amount: int) -> Position:
        with self.positions.lock(owner):
            with self._operation("redeem") as ctx:
                position = self.positions.get(owner)
                if position is None:
                    raise PositionNotActiveError()
                position = redeem_collateral(ctx, position, burn_amount, withdraw_amount)
        logger.info("Burned %d stablecoin, withdrew %d collateral for %s", burn_amount, withdraw_amount, owner)
        if not position.active:
            logger.info("Position %s closed", owner)
        return position

    def liquidate(self, liquidator: str, target_owner: str) -> LiquidationResult:
        with self.positions.lock(target_owner):
            with self._operation("liquidate") as ctx:
                position = self.positions.get(target_owner)
                if position is None:
                    raise PositionNotActiveError()
                result = liquidate(ctx, position, liquidator)
        logger.info(
            "Liquidated position %s: debt=%d, collateral_seized=%d, remaining=%d",
            target_owner,
            result.debt_repaid,
            result.collateral_seized,
            result.collateral_returned,
        )
        logger.info("LTV at liquidation: %d bps", result.ltv_bps)
        return result

    # Read-only views

    def position(self, owner: str) -> Optional[Position]:
        return self.positions.get(owner)

    def assess(self, owner: str) -> RiskAssessment:
        """Risk snapshot at the current price and time; nothing is written"""
        position = self.positions.get(owner)
        if position is None:
            raise PositionNotActiveError()
        price = self.oracle.get_price(self.settings.max_price_age_seconds, self.settings.price_feed_id)
        return RiskEngine(self.configs.snapshot()).assess(position, price, self.clock())

    def liquidatable_positions(self) -> List[RiskAssessment]:
        risk = RiskEngine(self.configs.snapshot())
        price = self.oracle.get_price(self.settings.max_price_age_seconds, self.settings.price_feed_id)
        now = self.clock()
        found = []
        for position in self.positions.positions():
            if not position.active:
                continue
            try:
                assessment = risk.assess(position, price, now)
            except ProtocolError as exc:
                logger.warning("Skipping position %s: %s (%s)", position.owner, exc, exc.code)
                continue
            if assessment.liquidatable:
                found.append(assessment)
        return found


def create_in_memory_engine(
    config_key: str = "stablecoin",
    clock: Optional[Callable[[], int]] = None,
    settings: Optional[EngineSettings] = None
) -> StablecoinEngine:
    """Engine wired to in-memory token ledger, vault and mock oracle"""
    clock = clock or (lambda: int(time.time()))
    settings = settings or EngineSettings()
    authority = MintAuthority(config_key)
    return StablecoinEngine(
        token_ledger=InMemoryTokenLedger(authority),
        vault=InMemoryCollateralVault(config_key),
        oracle=MockPriceOracle(clock, feed_id=settings.price_feed_id),
        mint_authority=authority,
        settings=settings,
        clock=clock,
    )
