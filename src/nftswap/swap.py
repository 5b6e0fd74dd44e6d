"""
NftSwap - single entry point for the swap order lifecycle.

build -> sign -> approve -> fill -> track
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict
import structlog

from nftswap.chain.addresses import (
    get_addresses_for_chain,
    get_forwarder_address,
    get_proxy_address_for_token_type,
)
from nftswap.chain.ledger import LedgerClient, TransactionHandle
from nftswap.errors import ConfigError, DegradedCapability
from nftswap.execution.approvals import ApprovalChecker
from nftswap.execution.fill import FillExecutor, FillOptions
from nftswap.execution.status import StatusTracker
from nftswap.orders import codec, signing
from nftswap.orders.models import (
    ApprovalStatus,
    Numeric,
    Order,
    OrderInfo,
    OrderStatus,
    SignedOrder,
    SigningOptions,
    SwappableAsset,
    TokenType,
)

logger = structlog.get_logger()


class ContractOverrides(BaseModel):
    """Caller-supplied contract addresses; each one beats the chain default."""

    model_config = ConfigDict(frozen=True)

    exchange_address: Optional[str] = None
    erc20_proxy_address: Optional[str] = None
    erc721_proxy_address: Optional[str] = None
    erc1155_proxy_address: Optional[str] = None
    forwarder_address: Optional[str] = None


class SwapSettings(BaseModel):
    """Resolved ambient configuration, fixed for the lifetime of an NftSwap."""

    model_config = ConfigDict(frozen=True)

    chain_id: int
    exchange_address: str
    erc20_proxy_address: Optional[str] = None
    erc721_proxy_address: Optional[str] = None
    erc1155_proxy_address: Optional[str] = None
    forwarder_address: Optional[str] = None

    def proxy_for(self, token_type: TokenType) -> Optional[str]:
        return {
            TokenType.ERC20: self.erc20_proxy_address,
            TokenType.ERC721: self.erc721_proxy_address,
            TokenType.ERC1155: self.erc1155_proxy_address,
        }[TokenType(token_type)]


def resolve_settings(
    chain_id: int,
    overrides: Optional[ContractOverrides] = None,
    has_signer: bool = True,
) -> Tuple[SwapSettings, List[DegradedCapability]]:
    """
    Merge overrides over the chain's default addresses.

    Returns:
        (settings, diagnostics) where diagnostics lists missing optional
        capabilities

    Raises:
        ConfigError: No exchange address for the chain
    """
    overrides = overrides or ContractOverrides()
    defaults = get_addresses_for_chain(chain_id)

    exchange_address = overrides.exchange_address or (defaults.exchange if defaults else None)
    if not exchange_address:
        raise ConfigError(
            f"Exchange contract address not set for chain {chain_id}. "
            "Supply it via ContractOverrides.exchange_address"
        )

    settings = SwapSettings(
        chain_id=chain_id,
        exchange_address=exchange_address.lower(),
        erc20_proxy_address=_lower(
            overrides.erc20_proxy_address
            or get_proxy_address_for_token_type(TokenType.ERC20, chain_id)
        ),
        erc721_proxy_address=_lower(
            overrides.erc721_proxy_address
            or get_proxy_address_for_token_type(TokenType.ERC721, chain_id)
        ),
        erc1155_proxy_address=_lower(
            overrides.erc1155_proxy_address
            or get_proxy_address_for_token_type(TokenType.ERC1155, chain_id)
        ),
        forwarder_address=_lower(
            overrides.forwarder_address or get_forwarder_address(chain_id)
        ),
    )

    diagnostics: List[DegradedCapability] = []
    if defaults is None:
        diagnostics.append(DegradedCapability(
            "default_addresses",
            f"Default contract addresses missing for chain {chain_id}",
        ))
    for token_type in TokenType:
        if not settings.proxy_for(token_type):
            diagnostics.append(DegradedCapability(
                f"{token_type.value.lower()}_proxy",
                f"{token_type.value} proxy address not set, {token_type.value} swaps will not work",
            ))
    if not settings.forwarder_address:
        diagnostics.append(DegradedCapability(
            "forwarder",
            "Forwarder contract address not set, native token buys will not work",
        ))
    if not has_signer:
        diagnostics.append(DegradedCapability(
            "signer",
            "No signer provided; read-only mode only",
        ))

    return settings, diagnostics


def _lower(address: Optional[str]) -> Optional[str]:
    return address.lower() if address else None


@dataclass
class SwapSetup:
    """Result of NftSwap.create: the usable handle plus degraded capabilities."""

    swap: "NftSwap"
    diagnostics: List[DegradedCapability] = field(default_factory=list)


class NftSwap:
    """
    Swap between ERC20, ERC721 and ERC1155 assets on the 0x v3 exchange.

    Ambient settings and the default signer are fixed at construction.
    Every method that takes an override uses it in preference to the
    ambient value.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        settings: SwapSettings,
        signer: Any = None,
        poll_interval_seconds: Optional[float] = None,
    ):
        self.ledger = ledger
        self.settings = settings
        self.signer = signer

        self.approvals = ApprovalChecker(ledger)
        self.tracker = StatusTracker(
            ledger,
            settings.exchange_address,
            settings.chain_id,
            poll_interval_seconds=poll_interval_seconds,
        )
        self.executor = FillExecutor(
            ledger,
            settings.exchange_address,
            forwarder_address=settings.forwarder_address,
            signer=signer,
        )

    @classmethod
    async def create(
        cls,
        ledger: LedgerClient,
        signer: Any = None,
        chain_id: Optional[int] = None,
        overrides: Optional[ContractOverrides] = None,
        poll_interval_seconds: Optional[float] = None,
    ) -> SwapSetup:
        """
        Resolve settings for the active chain and build an NftSwap.

        Args:
            ledger: Ledger client
            signer: Default signer (None for read-only use)
            chain_id: Chain ID (default: read from the ledger)
            overrides: Contract addresses that replace chain defaults

        Returns:
            SwapSetup with the handle and any degraded-capability diagnostics

        Raises:
            ConfigError: Exchange address unresolved
        """
        if chain_id is None:
            chain_id = await ledger.get_chain_id()

        settings, diagnostics = resolve_settings(
            chain_id, overrides, has_signer=signer is not None
        )
        for diagnostic in diagnostics:
            logger.warning(
                "swap_capability_degraded",
                chain_id=chain_id,
                capability=diagnostic.capability,
                message=str(diagnostic),
            )

        logger.info(
            "nftswap_initialized",
            chain_id=chain_id,
            exchange=settings.exchange_address,
            degraded=len(diagnostics),
        )

        swap = cls(ledger, settings, signer=signer, poll_interval_seconds=poll_interval_seconds)
        return SwapSetup(swap=swap, diagnostics=diagnostics)

    # ============== ORDERS ==============

    def build_order(
        self,
        maker_assets: Sequence[SwappableAsset],
        taker_assets: Sequence[SwappableAsset],
        maker_address: str,
        *,
        chain_id: Optional[int] = None,
        exchange_address: Optional[str] = None,
        taker_address: Optional[str] = None,
        expiration: Optional[Union[datetime, int]] = None,
        salt: Optional[Numeric] = None,
    ) -> Order:
        """
        Build an order for the ambient chain, or for chain_id when given.

        Without an explicit exchange_address the exchange is resolved for the
        target chain; ConfigError is raised when that chain has none.
        """
        target_chain_id = chain_id if chain_id is not None else self.settings.chain_id
        if exchange_address is None:
            exchange_address = self._exchange_for_chain(target_chain_id)

        return codec.build_order(
            maker_assets,
            taker_assets,
            maker_address,
            target_chain_id,
            exchange_address,
            taker_address=taker_address,
            expiration=expiration,
            salt=salt,
        )

    def _exchange_for_chain(self, chain_id: int) -> Optional[str]:
        if int(chain_id) == self.settings.chain_id:
            return self.settings.exchange_address
        defaults = get_addresses_for_chain(chain_id)
        return defaults.exchange if defaults else None

    def _order_domain(
        self,
        order: Order,
        chain_id: Optional[int],
        exchange_address: Optional[str],
    ) -> Tuple[int, str]:
        """Explicit override, then the order's own domain, then ambient settings."""
        return (
            chain_id if chain_id is not None else (order.chain_id or self.settings.chain_id),
            exchange_address or order.exchange_address or self.settings.exchange_address,
        )

    def normalize_order(self, order: Order) -> Order:
        return codec.normalize_order(order)

    def normalize_signed_order(self, order: SignedOrder) -> SignedOrder:
        return codec.normalize_signed_order(order)

    def get_order_hash(
        self,
        order: Order,
        chain_id: Optional[int] = None,
        exchange_address: Optional[str] = None,
    ) -> str:
        return codec.hash_order(order, *self._order_domain(order, chain_id, exchange_address))

    def get_typed_data(
        self,
        order: Order,
        chain_id: Optional[int] = None,
        exchange_address: Optional[str] = None,
    ) -> Dict[str, Any]:
        return codec.get_typed_data(order, *self._order_domain(order, chain_id, exchange_address))

    def sign_order(
        self,
        order: Order,
        signer_address: str,
        signer: Any = None,
        options: Optional[SigningOptions] = None,
        *,
        chain_id: Optional[int] = None,
        exchange_address: Optional[str] = None,
    ) -> SignedOrder:
        domain_chain_id, domain_exchange = self._order_domain(order, chain_id, exchange_address)
        return signing.sign_order(
            order,
            signer_address,
            signer or self.signer,
            domain_chain_id,
            domain_exchange,
            options,
        )

    def verify_order_signature(
        self,
        order: Order,
        signature: str,
        chain_id: Optional[int] = None,
        exchange_address: Optional[str] = None,
    ) -> bool:
        return signing.verify_order_signature(
            order,
            signature,
            *self._order_domain(order, chain_id, exchange_address),
        )

    # ============== APPROVALS ==============

    async def load_approval_status(
        self,
        asset: SwappableAsset,
        wallet_address: str,
        proxy_address: Optional[str] = None,
    ) -> ApprovalStatus:
        return await self.approvals.get_approval_status(
            wallet_address,
            proxy_address or self.settings.proxy_for(asset.type),
            asset,
        )

    async def approve_token_or_nft_by_asset(
        self,
        asset: SwappableAsset,
        wallet_address: str,
        tx_overrides: Optional[Dict[str, Any]] = None,
        *,
        signer: Any = None,
        approve: bool = True,
        proxy_address: Optional[str] = None,
    ) -> TransactionHandle:
        return await self.approvals.approve_asset(
            wallet_address,
            proxy_address or self.settings.proxy_for(asset.type),
            asset,
            signer or self.signer,
            approve=approve,
            tx_overrides=tx_overrides,
        )

    # ============== FILL / CANCEL ==============

    async def fill_signed_order(
        self,
        signed_order: SignedOrder,
        fill_options: Optional[FillOptions] = None,
        tx_overrides: Optional[Dict[str, Any]] = None,
    ) -> TransactionHandle:
        return await self.executor.fill_order(signed_order, fill_options, tx_overrides)

    async def cancel_order(
        self,
        order: Order,
        signer: Any = None,
        tx_overrides: Optional[Dict[str, Any]] = None,
    ) -> TransactionHandle:
        return await self.executor.cancel_order(order, signer, tx_overrides)

    async def batch_cancel_orders(
        self,
        orders: Sequence[Order],
        signer: Any = None,
        tx_overrides: Optional[Dict[str, Any]] = None,
    ) -> TransactionHandle:
        return await self.executor.batch_cancel_orders(orders, signer, tx_overrides)

    async def cancel_orders_up_to(
        self,
        target_order_epoch: Numeric,
        signer: Any = None,
        tx_overrides: Optional[Dict[str, Any]] = None,
    ) -> TransactionHandle:
        return await self.executor.cancel_orders_up_to(target_order_epoch, signer, tx_overrides)

    async def await_transaction_hash(self, tx_hash: str, timeout: Optional[int] = None) -> Any:
        return await self.ledger.wait_for_receipt(tx_hash, timeout=timeout)

    # ============== STATUS ==============

    async def get_order_info(self, order: Order) -> OrderInfo:
        return await self.tracker.get_order_info(order)

    async def get_order_status(self, order: Order) -> OrderStatus:
        return await self.tracker.get_order_status(order)

    async def wait_until_order_filled_or_cancelled(
        self,
        order: Order,
        timeout_ms: Optional[int] = None,
        throw_if_status_other_than_fillable_or_filled: bool = False,
    ) -> Optional[OrderInfo]:
        """
        Wait for the order to be filled, cancelled or otherwise settled.

        Returns:
            OrderInfo once the order leaves the fillable state, None on timeout
        """
        return await self.tracker.await_terminal_or_timeout(
            order,
            timeout_ms=timeout_ms,
            throw_on_non_fillable_non_filled=throw_if_status_other_than_fillable_or_filled,
        )


__all__ = [
    "ContractOverrides",
    "SwapSettings",
    "SwapSetup",
    "NftSwap",
    "resolve_settings",
]
