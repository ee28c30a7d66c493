"""Everything one operation may read or touch"""
from dataclasses import dataclass

from .collateral_vault import CollateralVault, VaultAuthority
from .oracle import Price, PricingOracle
from .risk_engine import RiskEngine
from .state.config import Config
from .token_ledger import MintAuthority, TokenLedger
from .transaction import Transaction


@dataclass
class OperationContext:
    config: Config  # snapshot taken once per operation
    now: int
    txn: Transaction
    tokens: TokenLedger
    vault: CollateralVault
    oracle: PricingOracle
    mint_authority: MintAuthority
    config_key: str
    max_price_age: int
    price_feed_id: str

    @property
    def risk(self) -> RiskEngine:
        return RiskEngine(self.config)

    def fetch_price(self) -> Price:
        return self.oracle.get_price(self.max_price_age, self.price_feed_id)

    def vault_authority(self, owner: str) -> VaultAuthority:
        return VaultAuthority(self.config_key, owner)
