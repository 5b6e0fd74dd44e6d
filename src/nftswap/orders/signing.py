"""
Order signing and signature verification.

Signatures use the 0x v3 layout: v (1 byte) || r (32) || s (32) || type (1).
"""

from typing import Any, Optional, Protocol, Tuple

from eth_account import Account
from eth_account.messages import encode_defunct, encode_typed_data
from eth_utils import to_bytes
import structlog

from nftswap.errors import SignerRequired
from nftswap.monitoring.metrics import orders_signed_total, signature_verifications_total
from nftswap.orders.codec import get_typed_data, hash_typed_data, normalize_order
from nftswap.orders.models import (
    Order,
    SignatureType,
    SignedOrder,
    SigningOptions,
)

logger = structlog.get_logger()


class OrderSigner(Protocol):
    """Signing capability (eth_account LocalAccount compatible)."""

    address: str

    def sign_typed_data(self, *args: Any, **kwargs: Any) -> Any: ...

    def sign_message(self, signable_message: Any) -> Any: ...


def parse_signature(signature: str) -> Tuple[int, int, int, SignatureType]:
    """
    Split a signature into (v, r, s, signature_type).

    Accepts the 66-byte 0x layout and a raw 65-byte r || s || v signature
    (treated as EIP712).

    Raises:
        ValueError: Unsupported length or signature type
    """
    sig = to_bytes(hexstr=signature)

    if len(sig) == 66:
        v, r, s, type_byte = sig[0], sig[1:33], sig[33:65], sig[65]
        signature_type = SignatureType(type_byte)
    elif len(sig) == 65:
        r, s, v = sig[:32], sig[32:64], sig[64]
        signature_type = SignatureType.EIP712
    else:
        raise ValueError(f"Invalid signature length: {len(sig)}")

    if v < 27:
        v += 27

    return v, int.from_bytes(r, "big"), int.from_bytes(s, "big"), signature_type


def format_signature(v: int, r: int, s: int, signature_type: SignatureType) -> str:
    """Encode v, r, s and the type byte in the 0x layout."""
    if v < 27:
        v += 27
    raw = (
        bytes([v])
        + r.to_bytes(32, "big")
        + s.to_bytes(32, "big")
        + bytes([int(signature_type)])
    )
    return "0x" + raw.hex()


def sign_order(
    order: Order,
    signer_address: str,
    signer: Optional[OrderSigner],
    chain_id: int,
    exchange_address: str,
    options: Optional[SigningOptions] = None,
) -> SignedOrder:
    """
    Sign an order with the maker's wallet.

    EIP712 signing hands the signer the full typed data so wallets can
    show the order fields; ETH_SIGN signs the order hash as a personal
    message for signers without typed data support.

    Args:
        order: Order to sign
        signer_address: Address expected to sign
        signer: Signing capability
        chain_id: Chain ID for the EIP-712 domain
        exchange_address: Verifying contract for the EIP-712 domain
        options: Signature type selection

    Returns:
        Signed order

    Raises:
        SignerRequired: No signer, or signer does not control signer_address
    """
    if signer is None:
        raise SignerRequired("sign_order: signer undefined")
    if signer.address.lower() != signer_address.lower():
        raise SignerRequired(
            f"sign_order: signer {signer.address} cannot sign for {signer_address}"
        )

    options = options or SigningOptions()
    order = normalize_order(order)
    typed_data = get_typed_data(order, chain_id, exchange_address)

    try:
        if options.signature_type == SignatureType.ETH_SIGN:
            order_hash = hash_typed_data(typed_data)
            signed = signer.sign_message(encode_defunct(primitive=order_hash))
        else:
            signed = signer.sign_typed_data(full_message=typed_data)
    except Exception as e:
        logger.error(
            "order_sign_failed",
            signer=signer_address,
            signature_type=options.signature_type.name,
            error=str(e),
        )
        raise

    signature = format_signature(signed.v, signed.r, signed.s, options.signature_type)

    orders_signed_total.labels(signature_type=options.signature_type.name).inc()
    logger.info(
        "order_signed",
        maker=order.maker_address,
        signature_type=options.signature_type.name,
    )

    return SignedOrder.from_order(order, signature)


def recover_order_signer(
    order: Order,
    signature: str,
    chain_id: int,
    exchange_address: str,
) -> str:
    """
    Recover the address that produced a signature over the order.

    Raises:
        ValueError: Malformed signature
    """
    v, r, s, signature_type = parse_signature(signature)
    typed_data = get_typed_data(order, chain_id, exchange_address)

    if signature_type == SignatureType.ETH_SIGN:
        signable = encode_defunct(primitive=hash_typed_data(typed_data))
    else:
        signable = encode_typed_data(full_message=typed_data)

    return Account.recover_message(signable, vrs=(v, r, s))


def verify_order_signature(
    order: Order,
    signature: str,
    chain_id: int,
    exchange_address: str,
) -> bool:
    """
    Check that the order's maker produced the signature.

    Returns False for malformed signatures instead of raising.
    """
    try:
        recovered = recover_order_signer(order, signature, chain_id, exchange_address)
    except Exception as e:
        logger.debug("signature_recovery_failed", error=str(e))
        signature_verifications_total.labels(result="malformed").inc()
        return False

    valid = recovered.lower() == order.maker_address.lower()
    signature_verifications_total.labels(result="valid" if valid else "mismatch").inc()
    return valid


__all__ = [
    "OrderSigner",
    "parse_signature",
    "format_signature",
    "sign_order",
    "recover_order_signer",
    "verify_order_signature",
]
