"""Position state management"""
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Dict, Iterator, Optional

from ..errors import MathOverflowError
from ..math_utils import checked_add, checked_sub
from ..constants import U64_MAX


@dataclass
class Position:
    """Represents a CDP position"""
    owner: str
    deposited_collateral: int = 0  # u64, raw collateral units
    debt_shares: int = 0  # u64, 1:1 with stablecoin units
    last_update_timestamp: int = 0  # i64
    active: bool = False

    def add_collateral(self, amount: int) -> None:
        self.deposited_collateral = checked_add(self.deposited_collateral, amount, bound=U64_MAX)

    def remove_collateral(self, amount: int) -> None:
        self.deposited_collateral = checked_sub(self.deposited_collateral, amount)

    def repay(self, amount: int) -> None:
        """Reduce debt; repaying more than is owed is an underflow"""
        if amount > self.debt_shares:
            raise MathOverflowError("Repayment exceeds outstanding debt")
        self.debt_shares -= amount

    def is_clear(self) -> bool:
        return self.deposited_collateral == 0 and self.debt_shares == 0

    def close_if_clear(self) -> bool:
        """Deactivate a fully repaid and emptied position"""
        if self.is_clear():
            self.active = False
            return True
        return False

    def clear(self, timestamp: int) -> None:
        self.deposited_collateral = 0
        self.debt_shares = 0
        self.active = False
        self.last_update_timestamp = timestamp


class PositionLedger:
    """Positions keyed by owner, one writer per owner at a time

    Records are never deleted; a cleared position is deactivated and reused by
    the owner's next deposit.
    """

    def __init__(self):
        self._positions: Dict[str, Position] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _owner_lock(self, owner: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(owner)
            if lock is None:
                lock = self._locks[owner] = threading.Lock()
            return lock

    @contextmanager
    def lock(self, owner: str) -> Iterator[None]:
        owner_lock = self._owner_lock(owner)
        with owner_lock:
            yield

    def get(self, owner: str) -> Optional[Position]:
        with self._guard:
            position = self._positions.get(owner)
            return replace(position) if position is not None else None

    def get_or_new(self, owner: str) -> Position:
        position = self.get(owner)
        return position if position is not None else Position(owner=owner)

    def put(self, position: Position) -> None:
        with self._guard:
            self._positions[position.owner] = replace(position)

    def positions(self) -> Iterator[Position]:
        with self._guard:
            snapshot = [replace(position) for position in self._positions.values()]
        return iter(snapshot)

    def __contains__(self, owner: str) -> bool:
        with self._guard:
            return owner in self._positions

    def __len__(self) -> int:
        with self._guard:
            return len(self._positions)
