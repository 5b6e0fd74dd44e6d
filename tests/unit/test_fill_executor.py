"""
Test fill and cancel submission.
"""

import dataclasses

import pytest

from nftswap.chain.abis import order_struct
from nftswap.errors import ForwarderUnavailable
from nftswap.execution.fill import FillExecutor, FillOptions
from nftswap.orders.codec import build_order
from nftswap.orders.signing import sign_order

from tests.conftest import CHAIN_ID, EXCHANGE_ADDRESS, FORWARDER_ADDRESS


@pytest.fixture
def signed_order(maker, sample_order):
    return sign_order(sample_order, maker.address, maker, CHAIN_ID, EXCHANGE_ADDRESS)


@pytest.fixture
def executor(mock_ledger, taker):
    return FillExecutor(
        mock_ledger,
        EXCHANGE_ADDRESS,
        forwarder_address=FORWARDER_ADDRESS,
        signer=taker,
    )


@pytest.mark.asyncio
class TestFillOrder:
    """Test exchange and forwarder fill paths."""

    async def test_direct_fill(self, executor, mock_ledger, taker, signed_order):
        handle = await executor.fill_order(signed_order)

        exchange = mock_ledger.contracts[EXCHANGE_ADDRESS]
        exchange.functions.fillOrder.assert_called_once_with(
            order_struct(signed_order),
            100000000000000000,
            bytes.fromhex(signed_order.signature[2:]),
        )
        args, kwargs = mock_ledger.send_transaction.call_args
        assert args[0] is exchange.functions.fillOrder.return_value
        assert args[1] is taker
        assert kwargs["action"] == "fill_order"
        assert handle.tx_hash == "0x" + "ab" * 32
        assert FORWARDER_ADDRESS not in mock_ledger.contracts

    async def test_partial_fill_amount(self, executor, mock_ledger, signed_order):
        await executor.fill_order(signed_order, FillOptions(fill_amount="25"))

        exchange = mock_ledger.contracts[EXCHANGE_ADDRESS]
        assert exchange.functions.fillOrder.call_args.args[1] == 25

    async def test_signer_override(self, executor, mock_ledger, maker, signed_order):
        await executor.fill_order(signed_order, FillOptions(signer=maker))
        assert mock_ledger.send_transaction.call_args.args[1] is maker

    async def test_native_token_fill_uses_forwarder(self, executor, mock_ledger, signed_order):
        await executor.fill_order(
            signed_order,
            FillOptions(buy_with_native_token_instead_of_wrapped_token=True),
        )

        forwarder = mock_ledger.contracts[FORWARDER_ADDRESS]
        forwarder.functions.marketBuyOrdersWithEth.assert_called_once_with(
            [order_struct(signed_order)],
            1,
            [bytes.fromhex(signed_order.signature[2:])],
            [],
            [],
        )
        kwargs = mock_ledger.send_transaction.call_args.kwargs
        assert kwargs["action"] == "fill_order_with_native_token"
        assert kwargs["overrides"] == {"value": 100000000000000000}
        assert EXCHANGE_ADDRESS not in mock_ledger.contracts

    async def test_native_token_value_override_wins(self, executor, mock_ledger, signed_order):
        await executor.fill_order(
            signed_order,
            FillOptions(buy_with_native_token_instead_of_wrapped_token=True),
            tx_overrides={"value": 7, "gas": 300000},
        )

        kwargs = mock_ledger.send_transaction.call_args.kwargs
        assert kwargs["overrides"] == {"value": 7, "gas": 300000}

    async def test_native_token_without_forwarder(self, mock_ledger, taker, signed_order):
        executor = FillExecutor(mock_ledger, EXCHANGE_ADDRESS, signer=taker)

        with pytest.raises(ForwarderUnavailable):
            await executor.fill_order(
                signed_order,
                FillOptions(buy_with_native_token_instead_of_wrapped_token=True),
            )

        mock_ledger.send_transaction.assert_not_called()


@pytest.mark.asyncio
class TestCancel:
    """Test cancellation transactions."""

    async def test_cancel_order(self, executor, mock_ledger, maker, sample_order):
        await executor.cancel_order(sample_order, signer=maker)

        exchange = mock_ledger.contracts[EXCHANGE_ADDRESS]
        exchange.functions.cancelOrder.assert_called_once_with(order_struct(sample_order))
        args, kwargs = mock_ledger.send_transaction.call_args
        assert args[1] is maker
        assert kwargs["action"] == "cancel_order"

    async def test_cancel_falls_back_to_default_signer(self, executor, mock_ledger, taker, sample_order):
        await executor.cancel_order(sample_order)
        assert mock_ledger.send_transaction.call_args.args[1] is taker

    async def test_batch_cancel(self, executor, mock_ledger, maker, nft_asset, weth_asset, sample_order):
        other = build_order([nft_asset], [weth_asset], maker.address, CHAIN_ID, EXCHANGE_ADDRESS)
        await executor.batch_cancel_orders([sample_order, other], signer=maker)

        exchange = mock_ledger.contracts[EXCHANGE_ADDRESS]
        exchange.functions.batchCancelOrders.assert_called_once_with(
            [order_struct(sample_order), order_struct(other)]
        )
        assert mock_ledger.send_transaction.call_args.kwargs["action"] == "batch_cancel_orders"

    async def test_batch_cancel_requires_orders(self, executor, mock_ledger):
        with pytest.raises(ValueError):
            await executor.batch_cancel_orders([])
        mock_ledger.send_transaction.assert_not_called()

    async def test_cancel_orders_up_to(self, executor, mock_ledger, maker):
        await executor.cancel_orders_up_to("1700000000", signer=maker)

        exchange = mock_ledger.contracts[EXCHANGE_ADDRESS]
        exchange.functions.cancelOrdersUpTo.assert_called_once_with(1700000000)
        assert mock_ledger.send_transaction.call_args.kwargs["action"] == "cancel_orders_up_to"

    async def test_batch_cancel_rejects_mixed_exchanges(self, executor, mock_ledger, sample_order):
        other = dataclasses.replace(
            sample_order, exchange_address="0x00000000000000000000000000000000000000ee"
        )

        with pytest.raises(ValueError):
            await executor.batch_cancel_orders([sample_order, other])
        mock_ledger.send_transaction.assert_not_called()
