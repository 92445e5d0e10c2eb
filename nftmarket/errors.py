"""
Failure taxonomy for the marketplace.

Every failure is a synchronous abort of the current call: the world
rolls back all state touched by the call before the exception leaves
the outermost entry point.
"""


class Revert(Exception):
    """Base class for anything that aborts a call."""


class MarketError(Revert):
    """Raised by the marketplace engine itself."""


class AuthorizationError(MarketError):
    """Caller is not the order's creator, the owner, or an approved operator."""


class ValidationError(MarketError, ValueError):
    """Malformed request: bad lengths, bad prices, bad shares, duplicates."""


class OrderNotFoundError(ValidationError, IndexError):
    """Order index is out of range for the (collection, token) book."""


class InsufficientFundsError(MarketError):
    """Attached value, escrow, or withdrawable balance is too low."""


class AssetTransferError(MarketError):
    """Both transfer-adapter attempts failed."""


class ReentrancyError(MarketError):
    """A guarded entry point was entered while another one was running."""


class TokenError(Revert):
    """Raised by token contracts."""


class ValueTransferError(Revert):
    """A native-value transfer could not be completed."""
