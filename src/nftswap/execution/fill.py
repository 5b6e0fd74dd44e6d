"""
Fill and cancel transactions against the exchange and forwarder.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

import structlog

from nftswap.chain.abis import EXCHANGE_ABI, FORWARDER_ABI, order_struct
from nftswap.chain.ledger import LedgerClient, TransactionHandle
from nftswap.errors import ForwarderUnavailable
from nftswap.monitoring.metrics import cancels_submitted_total, fills_submitted_total
from nftswap.orders.codec import normalize_order
from nftswap.orders.models import Numeric, Order, SignedOrder

logger = structlog.get_logger()


@dataclass(frozen=True)
class FillOptions:
    """Per-fill settings."""

    buy_with_native_token_instead_of_wrapped_token: bool = False
    # Defaults to the full taker amount (direct) or maker amount (forwarder)
    fill_amount: Optional[Numeric] = None
    signer: Any = None


class FillExecutor:
    """
    Submits fills and cancellations.

    Nothing here waits for confirmation: every method returns a handle
    for a submitted transaction.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        exchange_address: str,
        forwarder_address: Optional[str] = None,
        signer: Any = None,
    ):
        self.ledger = ledger
        self.exchange_address = exchange_address
        self.forwarder_address = forwarder_address
        self.signer = signer

    def _exchange_for(self, order: Order) -> Any:
        """Exchange contract the order names, or the default one."""
        return self.ledger.contract(
            order.exchange_address or self.exchange_address,
            EXCHANGE_ABI,
        )

    async def fill_order(
        self,
        signed_order: SignedOrder,
        fill_options: Optional[FillOptions] = None,
        tx_overrides: Optional[Dict[str, Any]] = None,
    ) -> TransactionHandle:
        """
        Fill a signed order as the taker.

        Args:
            signed_order: Maker-signed order
            fill_options: Path selection, amount and signer override
            tx_overrides: Transaction fields (value, gas, gasPrice...)

        Returns:
            Handle for the submitted fill

        Raises:
            ForwarderUnavailable: Native token path without a forwarder
            SignerRequired: No signer
            TransactionSubmissionFailure: Ledger rejected the fill
        """
        fill_options = fill_options or FillOptions()
        signer = fill_options.signer or self.signer
        signed_order = normalize_order(signed_order)

        if fill_options.buy_with_native_token_instead_of_wrapped_token:
            return await self._fill_with_native_token(
                signed_order, fill_options, signer, tx_overrides
            )

        fill_amount = int(
            fill_options.fill_amount
            if fill_options.fill_amount is not None
            else signed_order.taker_asset_amount
        )
        function = self._exchange_for(signed_order).functions.fillOrder(
            order_struct(signed_order),
            fill_amount,
            bytes.fromhex(signed_order.signature[2:]),
        )

        handle = await self.ledger.send_transaction(
            function,
            signer,
            action="fill_order",
            overrides=tx_overrides,
        )

        fills_submitted_total.labels(path="exchange").inc()
        logger.info(
            "order_fill_submitted",
            path="exchange",
            maker=signed_order.maker_address,
            taker_asset_fill_amount=fill_amount,
            tx_hash=handle.tx_hash,
        )

        return handle

    async def _fill_with_native_token(
        self,
        signed_order: SignedOrder,
        fill_options: FillOptions,
        signer: Any,
        tx_overrides: Optional[Dict[str, Any]],
    ) -> TransactionHandle:
        """Buy through the forwarder, which wraps the attached native value."""
        if not self.forwarder_address:
            raise ForwarderUnavailable(
                "Forwarder contract address not set, native token fills will not work"
            )

        forwarder = self.ledger.contract(self.forwarder_address, FORWARDER_ABI)
        maker_asset_buy_amount = int(
            fill_options.fill_amount
            if fill_options.fill_amount is not None
            else signed_order.maker_asset_amount
        )

        overrides = dict(tx_overrides or {})
        overrides.setdefault("value", int(signed_order.taker_asset_amount))

        function = forwarder.functions.marketBuyOrdersWithEth(
            [order_struct(signed_order)],
            maker_asset_buy_amount,
            [bytes.fromhex(signed_order.signature[2:])],
            [],
            [],
        )

        handle = await self.ledger.send_transaction(
            function,
            signer,
            action="fill_order_with_native_token",
            overrides=overrides,
        )

        fills_submitted_total.labels(path="forwarder").inc()
        logger.info(
            "order_fill_submitted",
            path="forwarder",
            maker=signed_order.maker_address,
            maker_asset_buy_amount=maker_asset_buy_amount,
            value=overrides["value"],
            tx_hash=handle.tx_hash,
        )

        return handle

    async def cancel_order(
        self,
        order: Order,
        signer: Any = None,
        tx_overrides: Optional[Dict[str, Any]] = None,
    ) -> TransactionHandle:
        """Cancel a single order. Only the maker (or sender) may cancel."""
        order = normalize_order(order)

        handle = await self.ledger.send_transaction(
            self._exchange_for(order).functions.cancelOrder(order_struct(order)),
            signer or self.signer,
            action="cancel_order",
            overrides=tx_overrides,
        )

        cancels_submitted_total.labels(kind="single").inc()
        logger.info(
            "order_cancel_submitted",
            maker=order.maker_address,
            salt=order.salt,
            tx_hash=handle.tx_hash,
        )

        return handle

    async def batch_cancel_orders(
        self,
        orders: Sequence[Order],
        signer: Any = None,
        tx_overrides: Optional[Dict[str, Any]] = None,
    ) -> TransactionHandle:
        """Cancel several orders in one transaction."""
        if not orders:
            raise ValueError("At least one order is required")

        orders = [normalize_order(o) for o in orders]
        exchanges = {o.exchange_address or self.exchange_address.lower() for o in orders}
        if len(exchanges) > 1:
            raise ValueError("Batch cancel orders must share one exchange")

        structs = [order_struct(o) for o in orders]
        handle = await self.ledger.send_transaction(
            self._exchange_for(orders[0]).functions.batchCancelOrders(structs),
            signer or self.signer,
            action="batch_cancel_orders",
            overrides=tx_overrides,
        )

        cancels_submitted_total.labels(kind="batch").inc()
        logger.info(
            "orders_batch_cancel_submitted",
            count=len(structs),
            tx_hash=handle.tx_hash,
        )

        return handle

    async def cancel_orders_up_to(
        self,
        target_order_epoch: Numeric,
        signer: Any = None,
        tx_overrides: Optional[Dict[str, Any]] = None,
    ) -> TransactionHandle:
        """Cancel every order of the signer with a salt up to and including target_order_epoch."""
        epoch = int(target_order_epoch)
        exchange = self.ledger.contract(self.exchange_address, EXCHANGE_ABI)
        handle = await self.ledger.send_transaction(
            exchange.functions.cancelOrdersUpTo(epoch),
            signer or self.signer,
            action="cancel_orders_up_to",
            overrides=tx_overrides,
        )

        cancels_submitted_total.labels(kind="up_to").inc()
        logger.info(
            "orders_cancel_up_to_submitted",
            target_order_epoch=epoch,
            tx_hash=handle.tx_hash,
        )

        return handle


__all__ = ["FillOptions", "FillExecutor"]
