"""Custom errors for the stablecoin engine

Every error carries the stable ``code`` of the matching program error so
callers can branch on it without parsing messages.
"""

class ProtocolError(Exception):
    """Base error class for protocol errors"""
    code = "ProtocolError"
    message = "Protocol error"

    def __init__(self, message=None):
        super().__init__(message or self.message)

# Taxonomy

class ValidationError(ProtocolError):
    """Rejected risk parameter or request argument"""

class AuthorizationError(ProtocolError):
    """Caller or capability lacks the right to act"""

class StateError(ProtocolError):
    """Operation not allowed in the current system or position state"""

class MathError(ProtocolError):
    """Checked arithmetic failed"""

class OracleError(ProtocolError):
    """Price could not be used"""

class BalanceError(ProtocolError):
    """Not enough tokens or collateral at a specific step"""

class SolvencyError(ProtocolError):
    """Resulting position would break a risk limit"""

class CollaboratorError(ProtocolError):
    """An external collaborator refused to move value"""

# Validation

class InvalidBpsError(ValidationError):
    code = "InvalidBps"
    message = "Invalid BPS value: must be between 0 and 10000"

class LtvOrderingError(ValidationError):
    """Max LTV and liquidation LTV are out of order"""
    code = "LtvOrdering"
    message = "Max LTV must be less than liquidation LTV"

class MaxLtvMustBeLessThanLiquidationLtvError(LtvOrderingError):
    code = "MaxLtvMustBeLessThanLiquidationLtv"
    message = "Max LTV must be less than liquidation LTV"

class LiquidationLtvMustBeGreaterThanMaxLtvError(LtvOrderingError):
    code = "LiquidationLtvMustBeGreaterThanMaxLtv"
    message = "Liquidation LTV must be greater than max LTV"

class LiquidationBonusTooHighError(ValidationError):
    code = "LiquidationBonusTooHigh"
    message = "Liquidation bonus too high: max 20%"

class MinHealthFactorTooLowError(ValidationError):
    code = "MinHealthFactorTooLow"
    message = "Min health factor too low: must be at least 100%"

class MinHealthFactorTooHighError(ValidationError):
    code = "MinHealthFactorTooHigh"
    message = "Min health factor too high: max 200%"

class BorrowRateTooHighError(ValidationError):
    code = "BorrowRateTooHigh"
    message = "Borrow rate too high: max 50% APR"

class InvalidSupplyCapError(ValidationError):
    code = "InvalidSupplyCap"
    message = "Invalid supply cap: must be greater than 0"

class InvalidAmountError(ValidationError):
    code = "InvalidAmount"
    message = "Invalid amount: must be greater than 0"

# Authorization

class UnauthorizedError(AuthorizationError):
    code = "Unauthorized"
    message = "Unauthorized: Only authority can perform this action"

# State

class SystemPausedError(StateError):
    code = "SystemPaused"
    message = "System is paused"

class PositionNotActiveError(StateError):
    code = "PositionNotActive"
    message = "Position not active"

class ConfigNotInitializedError(StateError):
    code = "ConfigNotInitialized"
    message = "Config has not been initialized"

class ConfigAlreadyInitializedError(StateError):
    code = "ConfigAlreadyInitialized"
    message = "Config is already initialized"

# Arithmetic

class MathOverflowError(MathError):
    code = "MathOverflow"
    message = "Math overflow occurred"

class InvalidTimestampError(MathError):
    code = "InvalidTimestamp"
    message = "Invalid timestamp"

# Oracle

class InvalidPriceError(OracleError):
    code = "InvalidPrice"
    message = "Invalid price from oracle"

class StalePriceError(InvalidPriceError):
    code = "StalePrice"
    message = "Price is older than the maximum allowed age"

class PriceFeedMismatchError(InvalidPriceError):
    code = "MismatchedFeedId"
    message = "Price update belongs to a different feed"

# Balance / liquidity

class InsufficientBalanceError(BalanceError):
    code = "InsufficientBalance"
    message = "Insufficient balance"

class InsufficientCollateralError(BalanceError):
    code = "InsufficientCollateral"
    message = "Insufficient collateral"

# Solvency

class ExceedsMaxLtvError(SolvencyError):
    code = "ExceedsMaxLtv"
    message = "Exceeds maximum LTV ratio"

class SupplyCapExceededError(SolvencyError):
    code = "SupplyCapExceeded"
    message = "Supply cap exceeded"

class HealthFactorTooLowError(SolvencyError):
    code = "HealthFactorTooLow"
    message = "Health factor too low"

class PositionNotLiquidatableError(SolvencyError):
    code = "PositionNotLiquidatable"
    message = "Position not liquidatable - health factor above threshold"

# Collaborators

class InsufficientFundsError(CollaboratorError):
    code = "InsufficientFunds"
    message = "Wallet cannot cover the collateral transfer"
