"""
Order models: assets, orders, signed orders and ledger status.
"""

from dataclasses import dataclass, fields
from enum import Enum, IntEnum
from typing import Any, Dict, Optional, Union


NULL_ADDRESS = "0x0000000000000000000000000000000000000000"
NULL_BYTES = "0x"
ZERO_AMOUNT = "0"
MAX_APPROVAL = 2 ** 256 - 1

Numeric = Union[int, str]


class TokenType(str, Enum):
    """Token standards supported by the asset proxies."""
    ERC20 = "ERC20"
    ERC721 = "ERC721"
    ERC1155 = "ERC1155"


class OrderStatus(IntEnum):
    """Order status codes as reported by the exchange contract."""
    INVALID = 0
    INVALID_MAKER_ASSET_AMOUNT = 1
    INVALID_TAKER_ASSET_AMOUNT = 2
    FILLABLE = 3
    EXPIRED = 4
    FULLY_FILLED = 5
    CANCELLED = 6
    INVALID_SIGNATURE = 7


class SignatureType(IntEnum):
    """0x v3 signature type byte."""
    EIP712 = 2
    ETH_SIGN = 3


@dataclass(frozen=True)
class SwappableAsset:
    """Semantic description of a tradeable asset."""

    type: TokenType
    token_address: str
    amount: Optional[Numeric] = None
    token_id: Optional[Numeric] = None


@dataclass(frozen=True)
class SigningOptions:
    """How a signature is requested from the signer."""

    signature_type: SignatureType = SignatureType.EIP712


# Order field name -> 0x wire name, in EIP-712 schema order
ORDER_WIRE_FIELDS = {
    "maker_address": "makerAddress",
    "taker_address": "takerAddress",
    "fee_recipient_address": "feeRecipientAddress",
    "sender_address": "senderAddress",
    "maker_asset_amount": "makerAssetAmount",
    "taker_asset_amount": "takerAssetAmount",
    "maker_fee": "makerFee",
    "taker_fee": "takerFee",
    "expiration_time_seconds": "expirationTimeSeconds",
    "salt": "salt",
    "maker_asset_data": "makerAssetData",
    "taker_asset_data": "takerAssetData",
    "maker_fee_asset_data": "makerFeeAssetData",
    "taker_fee_asset_data": "takerFeeAssetData",
}

ADDRESS_FIELDS = (
    "maker_address",
    "taker_address",
    "fee_recipient_address",
    "sender_address",
    "exchange_address",
)

NUMERIC_FIELDS = (
    "maker_asset_amount",
    "taker_asset_amount",
    "maker_fee",
    "taker_fee",
    "expiration_time_seconds",
    "salt",
)

BYTES_FIELDS = (
    "maker_asset_data",
    "taker_asset_data",
    "maker_fee_asset_data",
    "taker_fee_asset_data",
)


@dataclass(frozen=True)
class Order:
    """
    Unsigned 0x v3 order.

    Addresses are lower-case hex strings, numeric fields are decimal strings
    and asset data is 0x-prefixed hex. Use normalize_order() to get there
    from loosely typed input.
    """

    maker_address: str
    taker_address: str
    fee_recipient_address: str
    sender_address: str
    maker_asset_amount: str
    taker_asset_amount: str
    maker_fee: str
    taker_fee: str
    expiration_time_seconds: str
    salt: str
    maker_asset_data: str
    taker_asset_data: str
    maker_fee_asset_data: str
    taker_fee_asset_data: str
    chain_id: int
    exchange_address: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the 0x camelCase wire form."""
        data = {wire: getattr(self, name) for name, wire in ORDER_WIRE_FIELDS.items()}
        data["chainId"] = self.chain_id
        data["exchangeAddress"] = self.exchange_address
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Order":
        """Create from the 0x camelCase wire form."""
        kwargs = {name: data[wire] for name, wire in ORDER_WIRE_FIELDS.items()}
        kwargs["chain_id"] = int(data["chainId"])
        kwargs["exchange_address"] = data["exchangeAddress"]
        return cls(**kwargs)


@dataclass(frozen=True)
class SignedOrder(Order):
    """Order plus the maker's signature over its EIP-712 hash."""

    signature: str = NULL_BYTES

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["signature"] = self.signature
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SignedOrder":
        order = Order.from_dict(data)
        return cls.from_order(order, data["signature"])

    @classmethod
    def from_order(cls, order: Order, signature: str) -> "SignedOrder":
        values = {f.name: getattr(order, f.name) for f in fields(Order)}
        return cls(signature=signature, **values)


@dataclass(frozen=True)
class OrderInfo:
    """Point-in-time ledger view of an order."""

    order_status: OrderStatus
    order_hash: str
    order_taker_asset_filled_amount: int


@dataclass(frozen=True)
class ApprovalStatus:
    """Whether a proxy may move an asset on the owner's behalf."""

    content_approved: bool
    token_id_approved: Optional[bool] = None

    @property
    def approved(self) -> bool:
        return self.content_approved or bool(self.token_id_approved)


__all__ = [
    "NULL_ADDRESS",
    "NULL_BYTES",
    "ZERO_AMOUNT",
    "MAX_APPROVAL",
    "TokenType",
    "OrderStatus",
    "SignatureType",
    "SwappableAsset",
    "SigningOptions",
    "Order",
    "SignedOrder",
    "OrderInfo",
    "ApprovalStatus",
    "ORDER_WIRE_FIELDS",
    "ADDRESS_FIELDS",
    "NUMERIC_FIELDS",
    "BYTES_FIELDS",
]
