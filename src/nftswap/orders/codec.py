"""
Order construction, normalization and EIP-712 hashing.

Everything here is pure: no ledger access.
"""

import dataclasses
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Sequence, TypeVar, Union

from eth_account.messages import encode_typed_data
from eth_utils import keccak, to_checksum_address
import structlog

from nftswap.config import config
from nftswap.errors import ConfigError
from nftswap.monitoring.metrics import orders_built_total
from nftswap.orders.asset_data import encode_assets
from nftswap.orders.models import (
    ADDRESS_FIELDS,
    BYTES_FIELDS,
    NULL_ADDRESS,
    NULL_BYTES,
    NUMERIC_FIELDS,
    ORDER_WIRE_FIELDS,
    ZERO_AMOUNT,
    Numeric,
    Order,
    SignedOrder,
    SwappableAsset,
)

logger = structlog.get_logger()

OrderT = TypeVar("OrderT", bound=Order)

EIP712_DOMAIN_NAME = "0x Protocol"
EIP712_DOMAIN_VERSION = "3.0.0"

EIP712_TYPES = {
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
        {"name": "chainId", "type": "uint256"},
        {"name": "verifyingContract", "type": "address"},
    ],
    "Order": [
        {"name": "makerAddress", "type": "address"},
        {"name": "takerAddress", "type": "address"},
        {"name": "feeRecipientAddress", "type": "address"},
        {"name": "senderAddress", "type": "address"},
        {"name": "makerAssetAmount", "type": "uint256"},
        {"name": "takerAssetAmount", "type": "uint256"},
        {"name": "makerFee", "type": "uint256"},
        {"name": "takerFee", "type": "uint256"},
        {"name": "expirationTimeSeconds", "type": "uint256"},
        {"name": "salt", "type": "uint256"},
        {"name": "makerAssetData", "type": "bytes"},
        {"name": "takerAssetData", "type": "bytes"},
        {"name": "makerFeeAssetData", "type": "bytes"},
        {"name": "takerFeeAssetData", "type": "bytes"},
    ],
}


def generate_salt() -> str:
    """Random 256-bit salt as a decimal string."""
    return str(secrets.randbits(256))


def _expiration_seconds(expiration: Optional[Union[datetime, int]]) -> int:
    if expiration is None:
        expiration = datetime.now(timezone.utc) + timedelta(
            seconds=config.order.default_expiration_seconds
        )
    if isinstance(expiration, datetime):
        return int(expiration.timestamp())
    return int(expiration)


def build_order(
    maker_assets: Sequence[SwappableAsset],
    taker_assets: Sequence[SwappableAsset],
    maker_address: str,
    chain_id: int,
    exchange_address: Optional[str],
    *,
    taker_address: Optional[str] = None,
    expiration: Optional[Union[datetime, int]] = None,
    salt: Optional[Numeric] = None,
    fee_recipient_address: Optional[str] = None,
    sender_address: Optional[str] = None,
    maker_fee: Numeric = ZERO_AMOUNT,
    taker_fee: Numeric = ZERO_AMOUNT,
    maker_fee_asset_data: str = NULL_BYTES,
    taker_fee_asset_data: str = NULL_BYTES,
) -> Order:
    """
    Build a normalized order from maker and taker assets.

    Args:
        maker_assets: Assets the maker gives
        taker_assets: Assets the maker wants in return
        maker_address: Maker wallet address
        chain_id: Chain the order is valid on
        exchange_address: Exchange contract that will settle the order
        taker_address: Restrict the fill to one taker (default: anyone)
        expiration: datetime or unix seconds (default: one hour from now)
        salt: Replay-protection nonce (default: random 256-bit value)

    Returns:
        Normalized order

    Raises:
        ConfigError: No exchange address supplied
    """
    if not exchange_address:
        raise ConfigError(f"No exchange address resolved for chain {chain_id}")

    maker_asset_data, maker_asset_amount = encode_assets(maker_assets)
    taker_asset_data, taker_asset_amount = encode_assets(taker_assets)

    order = normalize_order(
        Order(
            maker_address=maker_address,
            taker_address=taker_address or NULL_ADDRESS,
            fee_recipient_address=fee_recipient_address or NULL_ADDRESS,
            sender_address=sender_address or NULL_ADDRESS,
            maker_asset_amount=str(maker_asset_amount),
            taker_asset_amount=str(taker_asset_amount),
            maker_fee=str(maker_fee),
            taker_fee=str(taker_fee),
            expiration_time_seconds=str(_expiration_seconds(expiration)),
            salt=str(salt) if salt is not None else generate_salt(),
            maker_asset_data=maker_asset_data,
            taker_asset_data=taker_asset_data,
            maker_fee_asset_data=maker_fee_asset_data,
            taker_fee_asset_data=taker_fee_asset_data,
            chain_id=int(chain_id),
            exchange_address=exchange_address,
        )
    )

    orders_built_total.inc()
    logger.info(
        "order_built",
        maker=order.maker_address,
        maker_assets=len(maker_assets),
        taker_assets=len(taker_assets),
        chain_id=order.chain_id,
        expiration=order.expiration_time_seconds,
    )

    return order


def normalize_order(order: OrderT) -> OrderT:
    """
    Canonicalize an order: lower-case addresses and hex, decimal-string numbers.

    Idempotent; returns a new value and never mutates the input.
    """
    changes: Dict[str, Any] = {}

    for name in ADDRESS_FIELDS:
        changes[name] = str(getattr(order, name)).lower()
    for name in NUMERIC_FIELDS:
        changes[name] = str(int(getattr(order, name)))
    for name in BYTES_FIELDS:
        value = getattr(order, name) or NULL_BYTES
        changes[name] = str(value).lower()
    changes["chain_id"] = int(order.chain_id)

    if isinstance(order, SignedOrder):
        changes["signature"] = order.signature.lower()

    return dataclasses.replace(order, **changes)


def normalize_signed_order(order: SignedOrder) -> SignedOrder:
    return normalize_order(order)


def get_eip712_domain(chain_id: int, exchange_address: str) -> Dict[str, Any]:
    return {
        "name": EIP712_DOMAIN_NAME,
        "version": EIP712_DOMAIN_VERSION,
        "chainId": int(chain_id),
        "verifyingContract": to_checksum_address(exchange_address),
    }


def order_message(order: Order) -> Dict[str, Any]:
    """EIP-712 message value for an order, in schema field order."""
    order = normalize_order(order)
    message: Dict[str, Any] = {}
    for name, wire in ORDER_WIRE_FIELDS.items():
        value = getattr(order, name)
        if name in NUMERIC_FIELDS:
            value = int(value)
        elif name in ADDRESS_FIELDS:
            value = to_checksum_address(value)
        message[wire] = value
    return message


def get_typed_data(order: Order, chain_id: int, exchange_address: str) -> Dict[str, Any]:
    """Full EIP-712 typed data (types, primaryType, domain, message)."""
    return {
        "types": EIP712_TYPES,
        "primaryType": "Order",
        "domain": get_eip712_domain(chain_id, exchange_address),
        "message": order_message(order),
    }


def hash_typed_data(typed_data: Dict[str, Any]) -> bytes:
    """keccak256(0x19 0x01 || domainSeparator || structHash)."""
    signable = encode_typed_data(full_message=typed_data)
    return keccak(b"\x19" + signable.version + signable.header + signable.body)


def hash_order(order: Order, chain_id: int, exchange_address: str) -> str:
    """
    EIP-712 order hash.

    Returns:
        0x-prefixed 32-byte hex digest
    """
    digest = hash_typed_data(get_typed_data(order, chain_id, exchange_address))
    return "0x" + digest.hex()


__all__ = [
    "EIP712_DOMAIN_NAME",
    "EIP712_DOMAIN_VERSION",
    "EIP712_TYPES",
    "generate_salt",
    "build_order",
    "normalize_order",
    "normalize_signed_order",
    "get_eip712_domain",
    "order_message",
    "get_typed_data",
    "hash_typed_data",
    "hash_order",
]
