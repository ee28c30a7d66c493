# Integer widths of the on-chain types
U16_MAX = 2**16 - 1
U64_MAX = 2**64 - 1
U128_MAX = 2**128 - 1
MAX_U128_DECIMAL_EXPONENT = 38  # 10**39 > u128::MAX
I32_MIN = -(2**31)
I32_MAX = 2**31 - 1
I64_MIN = -(2**63)
I64_MAX = 2**63 - 1

# Fixed point scale factors
BPS_SCALE = 10_000  # Basis points (100% = 10000)
SECONDS_PER_YEAR = 31_557_600  # Julian year, 365.25 days

# Risk parameter bounds (bps)
MAX_LIQUIDATION_BONUS_BPS = 2_000  # 20%
MIN_HEALTH_FACTOR_FLOOR_BPS = 10_000  # 100%
MIN_HEALTH_FACTOR_CEILING_BPS = 20_000  # 200%
MAX_BORROW_RATE_BPS = 5_000  # 50% APR

# Health factor / LTV returned when a position has nothing to measure against
MAX_HEALTH_FACTOR = U16_MAX
MAX_LTV_BPS_SATURATED = U16_MAX

# Default risk parameters
DEFAULT_MAX_LTV_BPS = 7_500           # 75% in bps
DEFAULT_LIQUIDATION_LTV_BPS = 8_500   # 85% in bps
DEFAULT_LIQUIDATION_BONUS_BPS = 500   # 5% in bps
DEFAULT_MIN_HEALTH_FACTOR_BPS = 10_000
DEFAULT_BORROW_RATE_BPS = 500         # 5% APR
DEFAULT_SUPPLY_CAP = 1_000_000_000_000_000

# Oracle constants
MAXIMUM_AGE = 100  # seconds a price may lag the clock
SOL_USD_FEED_ID = "0xef0d8b6fda2ceba41da15d4095d1da392a0d2f8ed0c6c7bc0f4cfac8c280b56d"

# Token constants
STABLECOIN_DECIMALS = 6
