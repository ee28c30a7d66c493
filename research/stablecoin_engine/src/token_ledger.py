"""Stablecoin token balances"""
import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict

from .constants import U64_MAX
from .errors import InsufficientBalanceError, UnauthorizedError
from .math_utils import checked_add, require_u64

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MintAuthority:
    """Capability to mint stablecoin for one deployment"""
    config_key: str


class TokenLedger:
    def mint(self, to: str, amount: int, authority: MintAuthority) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def burn(self, holder: str, amount: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def balance_of(self, account: str) -> int:  # pragma: no cover - interface
        raise NotImplementedError

    def total_supply(self) -> int:  # pragma: no cover - interface
        raise NotImplementedError


class InMemoryTokenLedger(TokenLedger):
    def __init__(self, mint_authority: MintAuthority):
        self._mint_authority = mint_authority
        self._balances: Dict[str, int] = defaultdict(int)
        self._supply = 0
        self._lock = threading.Lock()

    def mint(self, to: str, amount: int, authority: MintAuthority) -> None:
        require_u64(amount, "amount")
        if authority != self._mint_authority:
            raise UnauthorizedError("Mint authority does not match this token")
        with self._lock:
            self._supply = checked_add(self._supply, amount, bound=U64_MAX)
            self._balances[to] += amount
        logger.debug("Minted %d to %s", amount, to)

    def burn(self, holder: str, amount: int) -> None:
        require_u64(amount, "amount")
        with self._lock:
            if self._balances[holder] < amount:
                raise InsufficientBalanceError()
            self._balances[holder] -= amount
            self._supply -= amount
        logger.debug("Burned %d from %s", amount, holder)

    def transfer(self, src: str, dst: str, amount: int) -> None:
        require_u64(amount, "amount")
        with self._lock:
            if self._balances[src] < amount:
                raise InsufficientBalanceError()
            self._balances[src] -= amount
            self._balances[dst] += amount

    def balance_of(self, account: str) -> int:
        with self._lock:
            return self._balances.get(account, 0)

    def total_supply(self) -> int:
        with self._lock:
            return self._supply
