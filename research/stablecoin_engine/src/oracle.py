"""Collateral price feed"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .constants import SOL_USD_FEED_ID
from .errors import InvalidPriceError, PriceFeedMismatchError, StalePriceError
from .math_utils import require_price_fields

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Price:
    """Oracle price: USD value of one raw unit is price * 10**exponent"""
    price: int  # i64 mantissa
    exponent: int  # i32
    timestamp: int  # unix seconds


class PricingOracle:
    def get_price(self, max_age: int, feed_id: str) -> Price:  # pragma: no cover - interface
        """Latest price of ``feed_id`` no older than ``max_age`` seconds"""
        raise NotImplementedError


class MockPriceOracle(PricingOracle):
    """Settable single-feed price oracle checked against an injectable clock"""

    def __init__(self, clock: Optional[Callable[[], int]] = None, feed_id: str = SOL_USD_FEED_ID):
        self._clock = clock or (lambda: int(time.time()))
        self._lock = threading.Lock()
        self._price: Optional[Price] = None
        self.feed_id = feed_id

    def set_price(self, price: int, exponent: int, timestamp: Optional[int] = None) -> Price:
        if timestamp is None:
            timestamp = self._clock()
        require_price_fields(price, exponent, timestamp)
        update = Price(price=price, exponent=exponent, timestamp=timestamp)
        with self._lock:
            self._price = update
        logger.debug("Price update %d x 10^%d at %d", price, exponent, timestamp)
        return update

    def get_price(self, max_age: int, feed_id: str) -> Price:
        if feed_id.lower() != self.feed_id.lower():
            raise PriceFeedMismatchError(f"Requested feed {feed_id}, oracle publishes {self.feed_id}")
        with self._lock:
            current = self._price
        if current is None:
            raise StalePriceError("No price has been published")
        if current.price <= 0:
            raise InvalidPriceError()
        age = self._clock() - current.timestamp
        if age > max_age:
            raise StalePriceError(f"Price is {age}s old, maximum age is {max_age}s")
        return current
