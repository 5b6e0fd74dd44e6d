"""
Test configuration and fixtures.
"""

import pytest
from pathlib import Path
import sys
from unittest.mock import AsyncMock, MagicMock

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from eth_account import Account

from nftswap.chain.ledger import LedgerClient, TransactionHandle
from nftswap.orders.codec import build_order
from nftswap.orders.models import SwappableAsset, TokenType


CHAIN_ID = 1
EXCHANGE_ADDRESS = "0x61935cbdd02287b511119ddb11aeb42f1593b7ef"
FORWARDER_ADDRESS = "0x6958f5e95332d93d21af0d7b9ca85b8212fee0a5"
ERC20_PROXY = "0x95e6f48254609a6ee006f7d493c8e5fb97094cef"
ERC721_PROXY = "0xefc70a1b18c432bdc64b596838b4d138f6bc6cad"

WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
NFT_CONTRACT = "0x5af0d9827e0c53e4799bb226655a1de152a425a5"
MULTI_TOKEN_CONTRACT = "0x76be3b62873462d2142405439777e971754e8e77"

MAKER_KEY = "0x" + "11" * 32
TAKER_KEY = "0x" + "22" * 32


# ============== FIXTURES ==============

@pytest.fixture
def maker():
    """Maker wallet."""
    return Account.from_key(MAKER_KEY)


@pytest.fixture
def taker():
    """Taker wallet."""
    return Account.from_key(TAKER_KEY)


@pytest.fixture
def nft_asset():
    """Single ERC721 token."""
    return SwappableAsset(
        type=TokenType.ERC721,
        token_address=NFT_CONTRACT,
        token_id="42",
    )


@pytest.fixture
def weth_asset():
    """0.1 WETH."""
    return SwappableAsset(
        type=TokenType.ERC20,
        token_address=WETH,
        amount="100000000000000000",
    )


@pytest.fixture
def sample_order(maker, nft_asset, weth_asset):
    """Maker sells an NFT for 0.1 WETH."""
    return build_order(
        [nft_asset],
        [weth_asset],
        maker.address,
        CHAIN_ID,
        EXCHANGE_ADDRESS,
        expiration=1893456000,
        salt="123456789",
    )


@pytest.fixture
def mock_ledger():
    """Ledger client with one mock contract per address."""
    ledger = MagicMock(spec=LedgerClient)
    contracts = {}

    def contract(address, abi):
        return contracts.setdefault(address.lower(), MagicMock(name=f"contract:{address}"))

    ledger.contract.side_effect = contract
    ledger.contracts = contracts
    ledger.call = AsyncMock()
    ledger.get_chain_id = AsyncMock(return_value=CHAIN_ID)
    ledger.send_transaction = AsyncMock(
        side_effect=lambda *args, **kwargs: TransactionHandle(
            tx_hash="0x" + "ab" * 32,
            ledger=ledger,
        )
    )
    ledger.wait_for_receipt = AsyncMock(return_value={"status": 1, "blockNumber": 100})
    return ledger
