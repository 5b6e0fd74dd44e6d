"""
Default 0x v3 contract addresses per chain.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from nftswap.orders.models import TokenType


@dataclass(frozen=True)
class AddressesForChain:
    """Deployed contract addresses on one chain."""

    exchange: str
    erc20_proxy: Optional[str] = None
    erc721_proxy: Optional[str] = None
    erc1155_proxy: Optional[str] = None
    multi_asset_proxy: Optional[str] = None
    forwarder: Optional[str] = None
    wrapped_native_token: Optional[str] = None


# Ethereum mainnet
MAINNET = AddressesForChain(
    exchange="0x61935cbdd02287b511119ddb11aeb42f1593b7ef",
    erc20_proxy="0x95e6f48254609a6ee006f7d493c8e5fb97094cef",
    erc721_proxy="0xefc70a1b18c432bdc64b596838b4d138f6bc6cad",
    erc1155_proxy="0x7eefbd48fd63d441ec7435d024ec7c5131019add",
    multi_asset_proxy="0xef701d5389ae74503d633396c4d654eabedc9d78",
    forwarder="0x6958f5e95332d93d21af0d7b9ca85b8212fee0a5",
    wrapped_native_token="0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2",
)

# Ganache snapshot used by the 0x contracts test suite
GANACHE = AddressesForChain(
    exchange="0x48bacb9266a570d521063ef5dd96e61686dbe788",
    erc20_proxy="0x1dc4c1cefef38a777b15aa20260a54e584b16c48",
    erc721_proxy="0x1d7022f5b17d2f8b695918fb48fa1089c9f85401",
    erc1155_proxy="0x6a4a62e5a7ed13c361b176a5f62c2ee620ac0df8",
    wrapped_native_token="0x0b1ba0af832d7c05fd64161e0db78e85978e8082",
)

ADDRESSES: Dict[int, AddressesForChain] = {
    1: MAINNET,
    1337: GANACHE,
}


def get_addresses_for_chain(chain_id: int) -> Optional[AddressesForChain]:
    return ADDRESSES.get(int(chain_id))


def get_proxy_address_for_token_type(token_type: TokenType, chain_id: int) -> Optional[str]:
    """Default asset proxy for a token standard, or None if unknown."""
    addresses = get_addresses_for_chain(chain_id)
    if addresses is None:
        return None
    return {
        TokenType.ERC20: addresses.erc20_proxy,
        TokenType.ERC721: addresses.erc721_proxy,
        TokenType.ERC1155: addresses.erc1155_proxy,
    }[TokenType(token_type)]


def get_forwarder_address(chain_id: int) -> Optional[str]:
    addresses = get_addresses_for_chain(chain_id)
    return addresses.forwarder if addresses else None


__all__ = [
    "AddressesForChain",
    "ADDRESSES",
    "get_addresses_for_chain",
    "get_proxy_address_for_token_type",
    "get_forwarder_address",
]
