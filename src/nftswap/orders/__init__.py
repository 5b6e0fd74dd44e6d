"""
Order models, canonical encoding and signatures.
"""

from nftswap.orders.models import (
    TokenType,
    OrderStatus,
    SignatureType,
    SwappableAsset,
    SigningOptions,
    Order,
    SignedOrder,
    OrderInfo,
    ApprovalStatus,
)
from nftswap.orders.codec import (
    build_order,
    normalize_order,
    normalize_signed_order,
    get_typed_data,
    hash_order,
)
from nftswap.orders.signing import sign_order, verify_order_signature

__all__ = [
    "TokenType",
    "OrderStatus",
    "SignatureType",
    "SwappableAsset",
    "SigningOptions",
    "Order",
    "SignedOrder",
    "OrderInfo",
    "ApprovalStatus",
    "build_order",
    "normalize_order",
    "normalize_signed_order",
    "get_typed_data",
    "hash_order",
    "sign_order",
    "verify_order_signature",
]
