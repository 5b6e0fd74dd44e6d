"""
Exception hierarchy for swap order operations.
"""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from nftswap.orders.models import OrderInfo, OrderStatus


class NftSwapError(Exception):
    """Base exception for all swap errors."""
    pass


class ConfigError(NftSwapError):
    """Required configuration (exchange address) could not be resolved."""
    pass


class DegradedCapability(NftSwapError):
    """Optional contract address missing; dependent operations are unavailable."""

    def __init__(self, capability: str, message: str):
        super().__init__(message)
        self.capability = capability


class SignerRequired(NftSwapError):
    """Signing, approval or fill invoked without a usable signer."""
    pass


class ForwarderUnavailable(NftSwapError):
    """Native asset fill requested but no forwarder is configured."""
    pass


class UnexpectedOrderStatus(NftSwapError):
    """Order left the fillable state without being filled."""

    def __init__(
        self,
        status: "OrderStatus",
        order_info: Optional["OrderInfo"] = None,
    ):
        super().__init__(f"Unexpected order status: {status.name}")
        self.status = status
        self.order_info = order_info


class TransactionSubmissionFailure(NftSwapError):
    """Ledger rejected a submitted transaction."""

    def __init__(self, action: str, error: Exception):
        super().__init__(f"{action} failed: {error}")
        self.action = action
        self.error = error


__all__ = [
    "NftSwapError",
    "ConfigError",
    "DegradedCapability",
    "SignerRequired",
    "ForwarderUnavailable",
    "UnexpectedOrderStatus",
    "TransactionSubmissionFailure",
]
