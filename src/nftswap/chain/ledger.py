"""
Async ledger access on top of a synchronous web3 client.

Blocking RPC calls run in worker threads. Reads retry with exponential
backoff; transaction submission never retries.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from web3 import Web3
from tenacity import (
    RetryCallState,
    retry,
    stop_after_attempt,
    wait_exponential,
)
import structlog

from nftswap.config import config
from nftswap.errors import SignerRequired, TransactionSubmissionFailure
from nftswap.monitoring.metrics import transaction_failures_total

logger = structlog.get_logger()


def _log_read_retry(retry_state: RetryCallState) -> None:
    logger.warning(
        "ledger_read_retrying",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
    )


@dataclass(frozen=True)
class TransactionHandle:
    """Submitted transaction; await wait() for its receipt."""

    tx_hash: str
    ledger: "LedgerClient"

    async def wait(self, timeout: Optional[int] = None) -> Any:
        return await self.ledger.wait_for_receipt(self.tx_hash, timeout=timeout)


class LedgerClient:
    """
    Ledger client used by the swap components.

    Handles:
    - Chain ID lookup
    - Contract reads (with retry)
    - Transaction building, signing and submission
    - Receipt waiting
    """

    def __init__(self, w3: Web3):
        self.w3 = w3

    @classmethod
    def from_rpc_url(cls, rpc_url: Optional[str] = None) -> "LedgerClient":
        """Connect to a JSON-RPC endpoint (defaults to config.chain.rpc_url)."""
        url = rpc_url or config.chain.rpc_url
        w3 = Web3(Web3.HTTPProvider(url))

        if not w3.is_connected():
            raise ConnectionError(f"Failed to connect to RPC at {url}")

        logger.info("ledger_client_connected", rpc_url=url)
        return cls(w3)

    def contract(self, address: str, abi: Sequence[Dict[str, Any]]) -> Any:
        return self.w3.eth.contract(
            address=Web3.to_checksum_address(address),
            abi=abi,
        )

    @retry(
        stop=stop_after_attempt(config.tracker.read_retry_attempts),
        wait=wait_exponential(multiplier=1, min=1, max=config.tracker.read_retry_max_wait_seconds),
        before_sleep=_log_read_retry,
        reraise=True,
    )
    async def get_chain_id(self) -> int:
        return await asyncio.to_thread(lambda: self.w3.eth.chain_id)

    @retry(
        stop=stop_after_attempt(config.tracker.read_retry_attempts),
        wait=wait_exponential(multiplier=1, min=1, max=config.tracker.read_retry_max_wait_seconds),
        before_sleep=_log_read_retry,
        reraise=True,
    )
    async def call(self, contract_function: Any) -> Any:
        """
        Execute a view function.

        Args:
            contract_function: Bound web3 contract function

        Returns:
            Decoded return value
        """
        return await asyncio.to_thread(contract_function.call)

    def _build_and_send(
        self,
        contract_function: Any,
        signer: Any,
        overrides: Dict[str, Any],
    ) -> str:
        """Sync helper to build, sign and send (for running in thread)."""
        tx_params: Dict[str, Any] = {"from": signer.address}
        tx_params.update(overrides)

        if "chainId" not in tx_params:
            tx_params["chainId"] = self.w3.eth.chain_id
        if "nonce" not in tx_params:
            tx_params["nonce"] = self.w3.eth.get_transaction_count(signer.address)

        if "gasPrice" not in tx_params and "maxFeePerGas" not in tx_params:
            tx_params["gasPrice"] = int(
                self.w3.eth.gas_price * config.chain.gas_price_multiplier
            )
        if "gas" not in tx_params:
            tx_params["gas"] = contract_function.estimate_gas(
                {"from": signer.address, "value": tx_params.get("value", 0)}
            )

        transaction = contract_function.build_transaction(tx_params)
        signed_tx = signer.sign_transaction(transaction)
        tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        return Web3.to_hex(tx_hash)

    async def send_transaction(
        self,
        contract_function: Any,
        signer: Any,
        action: str,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> TransactionHandle:
        """
        Sign and submit a state-changing contract call.

        Args:
            contract_function: Bound web3 contract function
            signer: Account that signs and pays for the transaction
            action: Short label for logs and errors (e.g. "fill_order")
            overrides: Transaction fields (value, gas, gasPrice, nonce...)

        Returns:
            Handle for the submitted (not yet mined) transaction

        Raises:
            SignerRequired: No signer supplied
            TransactionSubmissionFailure: Ledger rejected the transaction
        """
        if signer is None:
            raise SignerRequired(f"{action}: signer undefined")

        try:
            tx_hash = await asyncio.to_thread(
                self._build_and_send,
                contract_function,
                signer,
                dict(overrides or {}),
            )
        except Exception as e:
            transaction_failures_total.labels(action=action).inc()
            logger.error(
                "transaction_submission_failed",
                action=action,
                sender=signer.address,
                error=str(e),
            )
            raise TransactionSubmissionFailure(action, e) from e

        logger.info(
            "transaction_submitted",
            action=action,
            sender=signer.address,
            tx_hash=tx_hash,
        )

        return TransactionHandle(tx_hash=tx_hash, ledger=self)

    async def wait_for_receipt(self, tx_hash: str, timeout: Optional[int] = None) -> Any:
        """Block until the transaction is mined and return its receipt."""
        timeout = timeout or config.tracker.receipt_timeout_seconds
        receipt = await asyncio.to_thread(
            self.w3.eth.wait_for_transaction_receipt,
            tx_hash,
            timeout=timeout,
        )

        logger.info(
            "transaction_confirmed",
            tx_hash=tx_hash,
            status=receipt.get("status"),
            block_number=receipt.get("blockNumber"),
        )

        return receipt


__all__ = ["LedgerClient", "TransactionHandle"]
