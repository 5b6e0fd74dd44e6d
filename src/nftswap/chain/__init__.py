"""
Ledger access and contract metadata.
"""

from nftswap.chain.ledger import LedgerClient, TransactionHandle
from nftswap.chain.addresses import AddressesForChain, get_addresses_for_chain

__all__ = [
    "LedgerClient",
    "TransactionHandle",
    "AddressesForChain",
    "get_addresses_for_chain",
]
