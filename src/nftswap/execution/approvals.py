"""
Token approvals for the 0x asset proxies.

ERC20 uses allowances; ERC721 and ERC1155 use operator approval.
"""

from typing import Any, Dict, Optional

from web3 import Web3
import structlog

from nftswap.chain.abis import ERC20_ABI, ERC721_ABI, ERC1155_ABI
from nftswap.chain.ledger import LedgerClient, TransactionHandle
from nftswap.errors import DegradedCapability, SignerRequired
from nftswap.monitoring.metrics import approvals_submitted_total
from nftswap.orders.models import (
    MAX_APPROVAL,
    ApprovalStatus,
    SwappableAsset,
    TokenType,
)

logger = structlog.get_logger()


def _require_proxy(spender_proxy: Optional[str], asset: SwappableAsset) -> str:
    if not spender_proxy:
        raise DegradedCapability(
            f"{asset.type.value.lower()}_proxy",
            f"{asset.type.value} proxy address not set, {asset.type.value} swaps will not work",
        )
    return spender_proxy


class ApprovalChecker:
    """Reads and grants proxy approvals for swappable assets."""

    def __init__(self, ledger: LedgerClient):
        self.ledger = ledger

    async def get_approval_status(
        self,
        owner: str,
        spender_proxy: Optional[str],
        asset: SwappableAsset,
    ) -> ApprovalStatus:
        """
        Check whether the proxy may move the asset for the owner.

        Args:
            owner: Asset owner wallet
            spender_proxy: Asset proxy contract for the asset's token type
            asset: Asset to check

        Returns:
            Approval status
        """
        spender_proxy = _require_proxy(spender_proxy, asset)
        owner_cs = Web3.to_checksum_address(owner)
        proxy_cs = Web3.to_checksum_address(spender_proxy)

        try:
            if asset.type == TokenType.ERC20:
                contract = self.ledger.contract(asset.token_address, ERC20_ABI)
                allowance = await self.ledger.call(
                    contract.functions.allowance(owner_cs, proxy_cs)
                )
                required = int(asset.amount) if asset.amount is not None else MAX_APPROVAL
                status = ApprovalStatus(content_approved=int(allowance) >= required)

            elif asset.type == TokenType.ERC721:
                contract = self.ledger.contract(asset.token_address, ERC721_ABI)
                approved_for_all = await self.ledger.call(
                    contract.functions.isApprovedForAll(owner_cs, proxy_cs)
                )
                token_id_approved = None
                if asset.token_id is not None:
                    approved_address = await self.ledger.call(
                        contract.functions.getApproved(int(asset.token_id))
                    )
                    token_id_approved = approved_address.lower() == spender_proxy.lower()
                status = ApprovalStatus(
                    content_approved=bool(approved_for_all),
                    token_id_approved=token_id_approved,
                )

            elif asset.type == TokenType.ERC1155:
                contract = self.ledger.contract(asset.token_address, ERC1155_ABI)
                approved_for_all = await self.ledger.call(
                    contract.functions.isApprovedForAll(owner_cs, proxy_cs)
                )
                status = ApprovalStatus(content_approved=bool(approved_for_all))

            else:
                raise ValueError(f"Unsupported token type: {asset.type}")

        except Exception as e:
            logger.error(
                "approval_status_check_failed",
                owner=owner,
                token=asset.token_address,
                token_type=asset.type.value,
                error=str(e),
            )
            raise

        logger.debug(
            "approval_status_loaded",
            owner=owner,
            token=asset.token_address,
            approved=status.approved,
        )

        return status

    async def approve_asset(
        self,
        owner: str,
        spender_proxy: Optional[str],
        asset: SwappableAsset,
        signer: Any,
        approve: bool = True,
        tx_overrides: Optional[Dict[str, Any]] = None,
    ) -> TransactionHandle:
        """
        Grant (or revoke) the proxy's permission to move the asset.

        ERC20 approves the max allowance (or zero to revoke); NFTs use
        setApprovalForAll. The returned handle is submitted, not mined.

        Raises:
            SignerRequired: No signer supplied
            TransactionSubmissionFailure: Ledger rejected the transaction
        """
        if signer is None:
            raise SignerRequired("approve_asset: signer undefined")
        spender_proxy = _require_proxy(spender_proxy, asset)
        proxy_cs = Web3.to_checksum_address(spender_proxy)

        if asset.type == TokenType.ERC20:
            contract = self.ledger.contract(asset.token_address, ERC20_ABI)
            function = contract.functions.approve(proxy_cs, MAX_APPROVAL if approve else 0)
        elif asset.type == TokenType.ERC721:
            contract = self.ledger.contract(asset.token_address, ERC721_ABI)
            function = contract.functions.setApprovalForAll(proxy_cs, approve)
        elif asset.type == TokenType.ERC1155:
            contract = self.ledger.contract(asset.token_address, ERC1155_ABI)
            function = contract.functions.setApprovalForAll(proxy_cs, approve)
        else:
            raise ValueError(f"Unsupported token type: {asset.type}")

        handle = await self.ledger.send_transaction(
            function,
            signer,
            action="approve_asset",
            overrides=tx_overrides,
        )

        approvals_submitted_total.labels(
            token_type=asset.type.value,
            approve=str(approve).lower(),
        ).inc()
        logger.info(
            "approval_submitted",
            owner=owner,
            token=asset.token_address,
            proxy=spender_proxy,
            approve=approve,
            tx_hash=handle.tx_hash,
        )

        return handle


__all__ = ["ApprovalChecker"]
