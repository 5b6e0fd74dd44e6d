"""
nftswap - 0x v3 swap order lifecycle

Build, sign, approve, fill and track peer-to-peer swaps between
ERC20, ERC721 and ERC1155 assets.
"""

__version__ = "1.0.0"
__author__ = "nftswap Team"

from nftswap.config import config
from nftswap.swap import NftSwap, ContractOverrides, SwapSettings, SwapSetup

__all__ = [
    "config",
    "NftSwap",
    "ContractOverrides",
    "SwapSettings",
    "SwapSetup",
    "__version__",
]
