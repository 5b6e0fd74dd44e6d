"""
Order status tracking against the exchange contract.

The exchange is the source of truth; nothing is cached between calls.
"""

import asyncio
import time
from typing import Optional, Tuple

import structlog

from nftswap.chain.abis import EXCHANGE_ABI, order_struct
from nftswap.chain.ledger import LedgerClient
from nftswap.config import config
from nftswap.errors import UnexpectedOrderStatus
from nftswap.monitoring.metrics import status_polls_total, track_order_wait
from nftswap.orders.codec import hash_order
from nftswap.orders.models import Order, OrderInfo, OrderStatus, SignedOrder
from nftswap.orders.signing import verify_order_signature

logger = structlog.get_logger()


class StatusTracker:
    """
    Reads order state from the exchange and waits for settlement.

    Handles:
    - Single order info / status reads
    - Polling until filled, cancelled, expired or timed out
    """

    def __init__(
        self,
        ledger: LedgerClient,
        exchange_address: str,
        chain_id: int,
        poll_interval_seconds: Optional[float] = None,
    ):
        self.ledger = ledger
        self.exchange_address = exchange_address
        self.chain_id = chain_id
        self.poll_interval_seconds = (
            poll_interval_seconds
            if poll_interval_seconds is not None
            else config.tracker.poll_interval_seconds
        )

    def _order_domain(self, order: Order) -> Tuple[int, str]:
        """Chain and exchange the order was built for, falling back to the tracker's."""
        return (
            order.chain_id or self.chain_id,
            order.exchange_address or self.exchange_address,
        )

    async def get_order_info(self, order: Order) -> OrderInfo:
        """
        Read the order's status and filled amount from the exchange.

        The order is read from the exchange it names. A SignedOrder whose
        signature does not recover to its maker under that domain is
        reported as INVALID_SIGNATURE without touching the ledger.
        """
        chain_id, exchange_address = self._order_domain(order)

        if isinstance(order, SignedOrder) and not verify_order_signature(
            order, order.signature, chain_id, exchange_address
        ):
            return OrderInfo(
                order_status=OrderStatus.INVALID_SIGNATURE,
                order_hash=hash_order(order, chain_id, exchange_address),
                order_taker_asset_filled_amount=0,
            )

        exchange = self.ledger.contract(exchange_address, EXCHANGE_ABI)
        status_code, order_hash, filled_amount = await self.ledger.call(
            exchange.functions.getOrderInfo(order_struct(order))
        )

        info = OrderInfo(
            order_status=OrderStatus(status_code),
            order_hash="0x" + bytes(order_hash).hex(),
            order_taker_asset_filled_amount=int(filled_amount),
        )

        status_polls_total.labels(status=info.order_status.name).inc()
        logger.debug(
            "order_info_loaded",
            order_hash=info.order_hash,
            status=info.order_status.name,
            filled=info.order_taker_asset_filled_amount,
        )

        return info

    async def get_order_status(self, order: Order) -> OrderStatus:
        info = await self.get_order_info(order)
        return info.order_status

    async def _poll_until_settled(
        self,
        order: Order,
        throw_on_non_fillable_non_filled: bool,
    ) -> OrderInfo:
        """Poll until the order leaves the FILLABLE state."""
        while True:
            info = await self.get_order_info(order)

            if info.order_status == OrderStatus.FILLABLE:
                await asyncio.sleep(self.poll_interval_seconds)
                continue

            if info.order_status == OrderStatus.FULLY_FILLED:
                return info

            # expired, cancelled, invalid...
            logger.info(
                "order_left_fillable_state",
                order_hash=info.order_hash,
                status=info.order_status.name,
            )
            if throw_on_non_fillable_non_filled:
                raise UnexpectedOrderStatus(info.order_status, info)
            return info

    async def await_terminal_or_timeout(
        self,
        order: Order,
        timeout_ms: Optional[int] = None,
        throw_on_non_fillable_non_filled: bool = False,
    ) -> Optional[OrderInfo]:
        """
        Wait until the order is filled or otherwise settled.

        The poll loop races a timeout; whichever finishes first wins and
        the other task is cancelled.

        Args:
            order: Order to track
            timeout_ms: Give up after this many milliseconds
            throw_on_non_fillable_non_filled: Raise instead of returning when
                the order ends in any state other than FULLY_FILLED

        Returns:
            Final order info, or None on timeout

        Raises:
            UnexpectedOrderStatus: Order cancelled/expired/invalid and the
                throw flag is set
        """
        if timeout_ms is None:
            timeout_ms = config.tracker.default_timeout_ms

        started = time.monotonic()
        poll_task = asyncio.create_task(
            self._poll_until_settled(order, throw_on_non_fillable_non_filled)
        )
        timeout_task = asyncio.create_task(asyncio.sleep(timeout_ms / 1000))

        try:
            done, pending = await asyncio.wait(
                {poll_task, timeout_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for task in (poll_task, timeout_task):
                if not task.done():
                    task.cancel()
            await asyncio.gather(poll_task, timeout_task, return_exceptions=True)

        elapsed = time.monotonic() - started

        if poll_task in done:
            try:
                info = poll_task.result()
            except UnexpectedOrderStatus:
                track_order_wait("unexpected_status", elapsed)
                raise
            track_order_wait(info.order_status.name.lower(), elapsed)
            logger.info(
                "order_wait_finished",
                order_hash=info.order_hash,
                status=info.order_status.name,
                elapsed_seconds=round(elapsed, 3),
            )
            return info

        track_order_wait("timeout", elapsed)
        logger.info(
            "order_wait_timed_out",
            maker=order.maker_address,
            timeout_ms=timeout_ms,
        )
        return None


__all__ = ["StatusTracker"]
