"""
Test NftSwap setup and the full order lifecycle against a mocked ledger.
"""

import pytest
from pydantic import ValidationError
from structlog.testing import capture_logs

from nftswap.errors import ConfigError, DegradedCapability, SignerRequired
from nftswap.execution.fill import FillOptions
from nftswap.orders.codec import hash_order
from nftswap.orders.models import NULL_ADDRESS, OrderStatus, TokenType
from nftswap.swap import ContractOverrides, NftSwap, resolve_settings

from tests.conftest import (
    CHAIN_ID,
    ERC721_PROXY,
    EXCHANGE_ADDRESS,
    FORWARDER_ADDRESS,
    NFT_CONTRACT,
    WETH,
)


UNKNOWN_CHAIN = 99999
CUSTOM_EXCHANGE = "0x00000000000000000000000000000000000000ee"


def capabilities(diagnostics):
    return [d.capability for d in diagnostics]


class TestResolveSettings:
    """Test merging of overrides over chain defaults."""

    def test_mainnet_defaults(self):
        settings, diagnostics = resolve_settings(CHAIN_ID)

        assert settings.exchange_address == EXCHANGE_ADDRESS
        assert settings.forwarder_address == FORWARDER_ADDRESS
        assert settings.proxy_for(TokenType.ERC721) == ERC721_PROXY
        assert diagnostics == []

    def test_unknown_chain_needs_exchange(self):
        with pytest.raises(ConfigError):
            resolve_settings(UNKNOWN_CHAIN)

    def test_unknown_chain_with_exchange_override(self):
        settings, diagnostics = resolve_settings(
            UNKNOWN_CHAIN,
            ContractOverrides(exchange_address=CUSTOM_EXCHANGE),
            has_signer=False,
        )

        assert settings.exchange_address == CUSTOM_EXCHANGE
        assert settings.erc20_proxy_address is None
        assert capabilities(diagnostics) == [
            "default_addresses",
            "erc20_proxy",
            "erc721_proxy",
            "erc1155_proxy",
            "forwarder",
            "signer",
        ]
        assert all(isinstance(d, DegradedCapability) for d in diagnostics)

    def test_chain_without_forwarder(self):
        settings, diagnostics = resolve_settings(1337)

        assert settings.forwarder_address is None
        assert capabilities(diagnostics) == ["forwarder"]

    def test_overrides_win_and_are_lowercased(self):
        settings, _ = resolve_settings(
            CHAIN_ID,
            ContractOverrides(
                exchange_address=CUSTOM_EXCHANGE.upper().replace("0X", "0x"),
                erc721_proxy_address="0x00000000000000000000000000000000000000AA",
            ),
        )

        assert settings.exchange_address == CUSTOM_EXCHANGE
        assert settings.erc721_proxy_address == "0x00000000000000000000000000000000000000aa"
        assert settings.forwarder_address == FORWARDER_ADDRESS

    def test_settings_are_immutable(self):
        settings, _ = resolve_settings(CHAIN_ID)

        with pytest.raises(ValidationError):
            settings.exchange_address = CUSTOM_EXCHANGE


@pytest.mark.asyncio
class TestCreate:
    """Test NftSwap.create."""

    async def test_reads_chain_id_from_ledger(self, mock_ledger, maker):
        setup = await NftSwap.create(mock_ledger, signer=maker)

        mock_ledger.get_chain_id.assert_awaited_once()
        assert setup.swap.settings.chain_id == CHAIN_ID
        assert setup.diagnostics == []

    async def test_explicit_chain_id(self, mock_ledger):
        setup = await NftSwap.create(mock_ledger, chain_id=1337)

        mock_ledger.get_chain_id.assert_not_called()
        assert setup.swap.settings.chain_id == 1337
        assert capabilities(setup.diagnostics) == ["forwarder", "signer"]

    async def test_degraded_capabilities_are_logged(self, mock_ledger):
        with capture_logs() as logs:
            await NftSwap.create(
                mock_ledger,
                chain_id=UNKNOWN_CHAIN,
                overrides=ContractOverrides(exchange_address=CUSTOM_EXCHANGE),
            )

        warnings = [log for log in logs if log["event"] == "swap_capability_degraded"]
        assert len(warnings) == 6
        assert all(log["log_level"] == "warning" for log in warnings)

    async def test_missing_exchange(self, mock_ledger):
        with pytest.raises(ConfigError):
            await NftSwap.create(mock_ledger, chain_id=UNKNOWN_CHAIN)


@pytest.mark.asyncio
class TestLifecycle:
    """Build, sign, approve, fill and track one order."""

    @pytest.fixture
    def swap(self, mock_ledger, maker):
        settings, _ = resolve_settings(CHAIN_ID)
        return NftSwap(mock_ledger, settings, signer=maker, poll_interval_seconds=0.01)

    async def test_build_sign_fill_wait(self, swap, mock_ledger, maker, taker, nft_asset, weth_asset):
        order = swap.build_order([nft_asset], [weth_asset], maker.address)
        signed = swap.sign_order(order, maker.address)

        assert swap.verify_order_signature(signed, signed.signature)
        assert swap.get_order_hash(signed) == hash_order(order, CHAIN_ID, EXCHANGE_ADDRESS)

        mock_ledger.call.side_effect = [True, NULL_ADDRESS]
        status = await swap.load_approval_status(nft_asset, maker.address)
        assert status.approved
        mock_ledger.contracts[NFT_CONTRACT].functions.isApprovedForAll.assert_called_once()

        handle = await swap.fill_signed_order(signed, FillOptions(signer=taker))
        assert mock_ledger.send_transaction.call_args.args[1] is taker
        await swap.await_transaction_hash(handle.tx_hash)
        mock_ledger.wait_for_receipt.assert_awaited_once_with(handle.tx_hash, timeout=None)

        order_hash = bytes.fromhex(swap.get_order_hash(signed)[2:])
        mock_ledger.call.side_effect = [
            (int(OrderStatus.FILLABLE), order_hash, 0),
            (int(OrderStatus.FULLY_FILLED), order_hash, int(signed.taker_asset_amount)),
        ]
        info = await swap.wait_until_order_filled_or_cancelled(signed, timeout_ms=5000)

        assert info.order_status == OrderStatus.FULLY_FILLED
        assert info.order_hash == swap.get_order_hash(signed)

    async def test_default_signer_used_for_approval(self, swap, mock_ledger, maker, weth_asset):
        await swap.approve_token_or_nft_by_asset(weth_asset, maker.address)

        args, kwargs = mock_ledger.send_transaction.call_args
        assert args[1] is maker
        assert kwargs["action"] == "approve_asset"
        mock_ledger.contracts[WETH].functions.approve.assert_called_once()

    async def test_proxy_override_wins(self, swap, mock_ledger, maker, nft_asset):
        proxy = "0x00000000000000000000000000000000000000aa"
        await swap.approve_token_or_nft_by_asset(nft_asset, maker.address, proxy_address=proxy)

        call = mock_ledger.contracts[NFT_CONTRACT].functions.setApprovalForAll.call_args
        assert call.args[0].lower() == proxy

    async def test_per_call_domain_override(self, swap, maker, sample_order):
        assert swap.get_order_hash(sample_order, chain_id=137) != swap.get_order_hash(sample_order)
        typed = swap.get_typed_data(sample_order, exchange_address=CUSTOM_EXCHANGE)
        assert typed["domain"]["verifyingContract"].lower() == CUSTOM_EXCHANGE

    async def test_read_only_swap_cannot_sign(self, mock_ledger, maker, sample_order):
        setup = await NftSwap.create(mock_ledger)

        with pytest.raises(SignerRequired):
            setup.swap.sign_order(sample_order, maker.address)

        signed = setup.swap.sign_order(sample_order, maker.address, signer=maker)
        assert setup.swap.verify_order_signature(signed, signed.signature)

    async def test_cancel_helpers(self, swap, mock_ledger, sample_order):
        await swap.cancel_order(sample_order)
        await swap.batch_cancel_orders([sample_order])
        await swap.cancel_orders_up_to(sample_order.salt)

        actions = [c.kwargs["action"] for c in mock_ledger.send_transaction.call_args_list]
        assert actions == ["cancel_order", "batch_cancel_orders", "cancel_orders_up_to"]

    async def test_status_passthrough(self, swap, mock_ledger, sample_order):
        mock_ledger.call.return_value = (int(OrderStatus.CANCELLED), b"\x02" * 32, 0)
        assert await swap.get_order_status(sample_order) == OrderStatus.CANCELLED


GANACHE_CHAIN = 1337
GANACHE_EXCHANGE = "0x48bacb9266a570d521063ef5dd96e61686dbe788"


class TestOrderDomain:
    """Orders carry their own chain and exchange through every step."""

    @pytest.fixture
    def swap(self, mock_ledger, maker):
        settings, _ = resolve_settings(CHAIN_ID)
        return NftSwap(mock_ledger, settings, signer=maker, poll_interval_seconds=0.01)

    def test_target_chain_resolves_its_exchange(self, swap, maker, nft_asset, weth_asset):
        order = swap.build_order([nft_asset], [weth_asset], maker.address, chain_id=GANACHE_CHAIN)

        assert order.chain_id == GANACHE_CHAIN
        assert order.exchange_address == GANACHE_EXCHANGE

    def test_target_chain_without_exchange(self, swap, maker, nft_asset, weth_asset):
        with pytest.raises(ConfigError):
            swap.build_order([nft_asset], [weth_asset], maker.address, chain_id=UNKNOWN_CHAIN)

    def test_explicit_exchange_for_unknown_chain(self, swap, maker, nft_asset, weth_asset):
        order = swap.build_order(
            [nft_asset], [weth_asset], maker.address,
            chain_id=UNKNOWN_CHAIN,
            exchange_address=CUSTOM_EXCHANGE,
        )
        assert order.exchange_address == CUSTOM_EXCHANGE

    def test_ambient_chain_keeps_ambient_exchange(self, swap, maker, nft_asset, weth_asset):
        order = swap.build_order([nft_asset], [weth_asset], maker.address, chain_id=CHAIN_ID)
        assert order.exchange_address == EXCHANGE_ADDRESS

    def test_hash_and_signature_follow_order_domain(self, swap, maker, nft_asset, weth_asset):
        order = swap.build_order(
            [nft_asset], [weth_asset], maker.address, exchange_address=CUSTOM_EXCHANGE
        )
        signed = swap.sign_order(order, maker.address)

        assert swap.get_order_hash(order) == hash_order(order, CHAIN_ID, CUSTOM_EXCHANGE)
        assert swap.get_typed_data(order)["domain"]["verifyingContract"].lower() == CUSTOM_EXCHANGE
        assert swap.verify_order_signature(signed, signed.signature)
        assert not swap.verify_order_signature(
            signed, signed.signature, exchange_address=EXCHANGE_ADDRESS
        )

    @pytest.mark.asyncio
    async def test_custom_exchange_round_trip(self, swap, mock_ledger, maker, nft_asset, weth_asset):
        order = swap.build_order(
            [nft_asset], [weth_asset], maker.address, exchange_address=CUSTOM_EXCHANGE
        )
        signed = swap.sign_order(order, maker.address, exchange_address=order.exchange_address)
        mock_ledger.call.return_value = (int(OrderStatus.FILLABLE), b"\x01" * 32, 0)

        info = await swap.get_order_info(signed)

        assert info.order_status == OrderStatus.FILLABLE
        mock_ledger.call.assert_awaited_once()
        mock_ledger.contracts[CUSTOM_EXCHANGE].functions.getOrderInfo.assert_called_once()
        assert EXCHANGE_ADDRESS not in mock_ledger.contracts

    @pytest.mark.asyncio
    async def test_custom_exchange_fill_and_cancel(self, swap, mock_ledger, maker, taker, nft_asset, weth_asset):
        order = swap.build_order(
            [nft_asset], [weth_asset], maker.address, exchange_address=CUSTOM_EXCHANGE
        )
        signed = swap.sign_order(order, maker.address)

        await swap.fill_signed_order(signed, FillOptions(signer=taker))
        await swap.cancel_order(order)

        exchange = mock_ledger.contracts[CUSTOM_EXCHANGE]
        exchange.functions.fillOrder.assert_called_once()
        exchange.functions.cancelOrder.assert_called_once()
        assert EXCHANGE_ADDRESS not in mock_ledger.contracts
