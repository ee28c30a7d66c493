"""Collateral custody: one vault per position owner"""
import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Optional

from .constants import U64_MAX
from .errors import InsufficientCollateralError, InsufficientFundsError, UnauthorizedError
from .math_utils import checked_add, require_u64

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VaultAuthority:
    """Capability to move collateral out of one owner's vault"""
    config_key: str
    owner: str


class CollateralVault:
    def deposit(self, owner: str, amount: int, source: Optional[str] = None) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def withdraw(self, owner: str, to: str, amount: int, authority: VaultAuthority) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def balance_of(self, owner: str) -> int:  # pragma: no cover - interface
        raise NotImplementedError


class InMemoryCollateralVault(CollateralVault):
    """Vault balances plus the external wallets collateral moves between"""

    def __init__(self, config_key: str):
        self._config_key = config_key
        self._vaults: Dict[str, int] = defaultdict(int)
        self._wallets: Dict[str, int] = defaultdict(int)
        self._lock = threading.Lock()

    def fund(self, account: str, amount: int) -> None:
        """Credit an external wallet with collateral"""
        require_u64(amount, "amount")
        with self._lock:
            self._wallets[account] = checked_add(self._wallets[account], amount, bound=U64_MAX)

    def deposit(self, owner: str, amount: int, source: Optional[str] = None) -> None:
        require_u64(amount, "amount")
        source = owner if source is None else source
        with self._lock:
            if self._wallets[source] < amount:
                raise InsufficientFundsError()
            self._wallets[source] -= amount
            self._vaults[owner] = checked_add(self._vaults[owner], amount, bound=U64_MAX)
        logger.debug("Vault %s received %d from %s", owner, amount, source)

    def withdraw(self, owner: str, to: str, amount: int, authority: VaultAuthority) -> None:
        require_u64(amount, "amount")
        if authority != VaultAuthority(self._config_key, owner):
            raise UnauthorizedError("Vault authority does not match this vault")
        with self._lock:
            if self._vaults[owner] < amount:
                raise InsufficientCollateralError()
            self._vaults[owner] -= amount
            self._wallets[to] = checked_add(self._wallets[to], amount, bound=U64_MAX)
        logger.debug("Vault %s released %d to %s", owner, amount, to)

    def balance_of(self, owner: str) -> int:
        with self._lock:
            return self._vaults.get(owner, 0)

    def wallet_balance(self, account: str) -> int:
        with self._lock:
            return self._wallets.get(account, 0)
