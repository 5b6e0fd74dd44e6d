"""
0x v3 asset data encoding.

Asset data is a 4-byte proxy id followed by the ABI-encoded asset fields.
"""

from typing import Any, Dict, List, Sequence, Tuple

from eth_abi import decode as abi_decode, encode as abi_encode
from eth_abi.exceptions import DecodingError
from eth_utils import to_bytes, to_checksum_address
import structlog

from nftswap.orders.models import NULL_BYTES, SwappableAsset, TokenType

logger = structlog.get_logger()


ERC20_PROXY_ID = "0xf47261b0"
ERC721_PROXY_ID = "0x02571792"
ERC1155_PROXY_ID = "0xa7cb5fb7"
MULTI_ASSET_PROXY_ID = "0x94cfcdd7"

_PROXY_ABI_TYPES = {
    ERC20_PROXY_ID: ["address"],
    ERC721_PROXY_ID: ["address", "uint256"],
    ERC1155_PROXY_ID: ["address", "uint256[]", "uint256[]", "bytes"],
    MULTI_ASSET_PROXY_ID: ["uint256[]", "bytes[]"],
}


def _with_proxy_id(proxy_id: str, types: List[str], values: List[Any]) -> str:
    return proxy_id + abi_encode(types, values).hex()


def encode_erc20_asset_data(token_address: str) -> str:
    return _with_proxy_id(
        ERC20_PROXY_ID,
        _PROXY_ABI_TYPES[ERC20_PROXY_ID],
        [to_checksum_address(token_address)],
    )


def encode_erc721_asset_data(token_address: str, token_id: int) -> str:
    return _with_proxy_id(
        ERC721_PROXY_ID,
        _PROXY_ABI_TYPES[ERC721_PROXY_ID],
        [to_checksum_address(token_address), int(token_id)],
    )


def encode_erc1155_asset_data(
    token_address: str,
    token_ids: Sequence[int],
    values: Sequence[int],
    callback_data: str = NULL_BYTES,
) -> str:
    return _with_proxy_id(
        ERC1155_PROXY_ID,
        _PROXY_ABI_TYPES[ERC1155_PROXY_ID],
        [
            to_checksum_address(token_address),
            [int(i) for i in token_ids],
            [int(v) for v in values],
            to_bytes(hexstr=callback_data),
        ],
    )


def encode_multi_asset_data(amounts: Sequence[int], nested_asset_data: Sequence[str]) -> str:
    if len(amounts) != len(nested_asset_data):
        raise ValueError("amounts and nested asset data must have the same length")
    return _with_proxy_id(
        MULTI_ASSET_PROXY_ID,
        _PROXY_ABI_TYPES[MULTI_ASSET_PROXY_ID],
        [
            [int(a) for a in amounts],
            [to_bytes(hexstr=d) for d in nested_asset_data],
        ],
    )


def decode_asset_data(asset_data: str) -> Dict[str, Any]:
    """
    Decode asset data into its proxy id and fields.

    Args:
        asset_data: 0x-prefixed asset data

    Returns:
        Dict with "proxy_id" plus the fields of that proxy

    Raises:
        ValueError: Unknown proxy id or malformed payload
    """
    asset_data = asset_data.lower()
    proxy_id = asset_data[:10]
    types = _PROXY_ABI_TYPES.get(proxy_id)
    if types is None:
        raise ValueError(f"Unknown asset proxy id: {proxy_id}")

    try:
        values = abi_decode(types, to_bytes(hexstr="0x" + asset_data[10:]))
    except DecodingError as e:
        raise ValueError(f"Malformed asset data for proxy {proxy_id}: {e}") from e

    if proxy_id == ERC20_PROXY_ID:
        return {"proxy_id": proxy_id, "token_address": values[0].lower()}
    if proxy_id == ERC721_PROXY_ID:
        return {
            "proxy_id": proxy_id,
            "token_address": values[0].lower(),
            "token_id": values[1],
        }
    if proxy_id == ERC1155_PROXY_ID:
        return {
            "proxy_id": proxy_id,
            "token_address": values[0].lower(),
            "token_ids": list(values[1]),
            "values": list(values[2]),
            "callback_data": "0x" + values[3].hex(),
        }
    return {
        "proxy_id": proxy_id,
        "amounts": list(values[0]),
        "nested_asset_data": ["0x" + d.hex() for d in values[1]],
    }


def asset_amount(asset: SwappableAsset) -> int:
    """Amount of the asset the order moves, defaulting to 1 for NFTs."""
    if asset.amount is not None:
        return int(asset.amount)
    if asset.type == TokenType.ERC20:
        raise ValueError(f"ERC20 asset {asset.token_address} requires an amount")
    return 1


def encode_asset(asset: SwappableAsset) -> Tuple[str, int]:
    """
    Convert an asset into (asset_data, order_amount).

    ERC1155 values are carried inside the asset data so the order amount
    is always 1 for a single ERC1155 asset.
    """
    if asset.type == TokenType.ERC20:
        return encode_erc20_asset_data(asset.token_address), asset_amount(asset)

    if asset.token_id is None:
        raise ValueError(f"{asset.type.value} asset {asset.token_address} requires a token_id")

    if asset.type == TokenType.ERC721:
        return encode_erc721_asset_data(asset.token_address, int(asset.token_id)), 1

    if asset.type == TokenType.ERC1155:
        return (
            encode_erc1155_asset_data(
                asset.token_address,
                [int(asset.token_id)],
                [asset_amount(asset)],
            ),
            1,
        )

    raise ValueError(f"Unsupported token type: {asset.type}")


def encode_assets(assets: Sequence[SwappableAsset]) -> Tuple[str, int]:
    """
    Convert one or more assets into (asset_data, order_amount).

    More than one asset is bundled as MultiAsset data with an order amount of 1.
    """
    if not assets:
        raise ValueError("At least one asset is required")

    if len(assets) == 1:
        return encode_asset(assets[0])

    encoded = [encode_asset(asset) for asset in assets]
    logger.debug("multi_asset_encoded", count=len(encoded))
    return (
        encode_multi_asset_data(
            [amount for _, amount in encoded],
            [data for data, _ in encoded],
        ),
        1,
    )


__all__ = [
    "ERC20_PROXY_ID",
    "ERC721_PROXY_ID",
    "ERC1155_PROXY_ID",
    "MULTI_ASSET_PROXY_ID",
    "encode_erc20_asset_data",
    "encode_erc721_asset_data",
    "encode_erc1155_asset_data",
    "encode_multi_asset_data",
    "decode_asset_data",
    "asset_amount",
    "encode_asset",
    "encode_assets",
]
