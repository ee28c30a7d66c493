"""Runtime settings with environment overrides"""
import logging
import os
import sys
from dataclasses import dataclass
from typing import Mapping, Optional, TextIO

from .constants import MAXIMUM_AGE, SOL_USD_FEED_ID, STABLECOIN_DECIMALS

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class EngineSettings:
    """Oracle and token settings that are not part of the on-chain Config"""

    max_price_age_seconds: int = MAXIMUM_AGE
    price_feed_id: str = SOL_USD_FEED_ID
    stablecoin_decimals: int = STABLECOIN_DECIMALS

    @classmethod
    def from_environment(cls, env: Optional[Mapping[str, str]] = None) -> "EngineSettings":
        env = os.environ if env is None else env
        settings = cls()

        max_age = _env_int(env.get("STABLECOIN_MAX_PRICE_AGE"))
        if max_age is not None and max_age >= 0:
            settings.max_price_age_seconds = max_age

        feed_id = env.get("STABLECOIN_PRICE_FEED_ID")
        if feed_id:
            settings.price_feed_id = feed_id.strip()

        decimals = _env_int(env.get("STABLECOIN_DECIMALS"))
        if decimals is not None and decimals >= 0:
            settings.stablecoin_decimals = decimals

        return settings


def _env_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def configure_logging(level: int = logging.INFO, stream: Optional[TextIO] = None) -> logging.Logger:
    """Attach one stream handler to the package logger"""
    package_logger = logging.getLogger(__name__.rsplit(".", 1)[0])
    for handler in list(package_logger.handlers):
        if getattr(handler, "_stablecoin_engine", False):
            package_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._stablecoin_engine = True
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    return package_logger
