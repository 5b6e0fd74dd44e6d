"""
Partial ABIs for the 0x v3 exchange, forwarder and token contracts.
"""

from typing import Tuple

from eth_utils import to_bytes, to_checksum_address

from nftswap.orders.models import Order


ORDER_COMPONENTS = [
    {"name": "makerAddress", "type": "address"},
    {"name": "takerAddress", "type": "address"},
    {"name": "feeRecipientAddress", "type": "address"},
    {"name": "senderAddress", "type": "address"},
    {"name": "makerAssetAmount", "type": "uint256"},
    {"name": "takerAssetAmount", "type": "uint256"},
    {"name": "makerFee", "type": "uint256"},
    {"name": "takerFee", "type": "uint256"},
    {"name": "expirationTimeSeconds", "type": "uint256"},
    {"name": "salt", "type": "uint256"},
    {"name": "makerAssetData", "type": "bytes"},
    {"name": "takerAssetData", "type": "bytes"},
    {"name": "makerFeeAssetData", "type": "bytes"},
    {"name": "takerFeeAssetData", "type": "bytes"},
]

_ORDER_INPUT = {"components": ORDER_COMPONENTS, "name": "order", "type": "tuple"}
_ORDERS_INPUT = {"components": ORDER_COMPONENTS, "name": "orders", "type": "tuple[]"}

_FILL_RESULTS = {
    "components": [
        {"name": "makerAssetFilledAmount", "type": "uint256"},
        {"name": "takerAssetFilledAmount", "type": "uint256"},
        {"name": "makerFeePaid", "type": "uint256"},
        {"name": "takerFeePaid", "type": "uint256"},
        {"name": "protocolFeePaid", "type": "uint256"},
    ],
    "name": "fillResults",
    "type": "tuple",
}

EXCHANGE_ABI = [
    {
        "inputs": [_ORDER_INPUT],
        "name": "getOrderInfo",
        "outputs": [
            {
                "components": [
                    {"name": "orderStatus", "type": "uint8"},
                    {"name": "orderHash", "type": "bytes32"},
                    {"name": "orderTakerAssetFilledAmount", "type": "uint256"},
                ],
                "name": "orderInfo",
                "type": "tuple",
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            _ORDER_INPUT,
            {"name": "takerAssetFillAmount", "type": "uint256"},
            {"name": "signature", "type": "bytes"},
        ],
        "name": "fillOrder",
        "outputs": [_FILL_RESULTS],
        "stateMutability": "payable",
        "type": "function",
    },
    {
        "inputs": [_ORDER_INPUT],
        "name": "cancelOrder",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function",
    },
    {
        "inputs": [_ORDERS_INPUT],
        "name": "batchCancelOrders",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function",
    },
    {
        "inputs": [{"name": "targetOrderEpoch", "type": "uint256"}],
        "name": "cancelOrdersUpTo",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function",
    },
]

FORWARDER_ABI = [
    {
        "inputs": [
            _ORDERS_INPUT,
            {"name": "makerAssetBuyAmount", "type": "uint256"},
            {"name": "signatures", "type": "bytes[]"},
            {"name": "ethFeeAmounts", "type": "uint256[]"},
            {"name": "feeRecipients", "type": "address[]"},
        ],
        "name": "marketBuyOrdersWithEth",
        "outputs": [
            {"name": "wethSpentAmount", "type": "uint256"},
            {"name": "makerAssetAcquiredAmount", "type": "uint256"},
        ],
        "stateMutability": "payable",
        "type": "function",
    },
]

ERC20_ABI = [
    {
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"}
        ],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"}
        ],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    },
]

# Shared by ERC721 and ERC1155
OPERATOR_APPROVAL_ABI = [
    {
        "inputs": [
            {"name": "operator", "type": "address"},
            {"name": "approved", "type": "bool"},
        ],
        "name": "setApprovalForAll",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "operator", "type": "address"},
        ],
        "name": "isApprovedForAll",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function",
    },
]

ERC721_ABI = OPERATOR_APPROVAL_ABI + [
    {
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "name": "getApproved",
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
]

ERC1155_ABI = OPERATOR_APPROVAL_ABI


def order_struct(order: Order) -> Tuple:
    """Order as the tuple the exchange ABI expects."""
    return (
        to_checksum_address(order.maker_address),
        to_checksum_address(order.taker_address),
        to_checksum_address(order.fee_recipient_address),
        to_checksum_address(order.sender_address),
        int(order.maker_asset_amount),
        int(order.taker_asset_amount),
        int(order.maker_fee),
        int(order.taker_fee),
        int(order.expiration_time_seconds),
        int(order.salt),
        to_bytes(hexstr=order.maker_asset_data),
        to_bytes(hexstr=order.taker_asset_data),
        to_bytes(hexstr=order.maker_fee_asset_data),
        to_bytes(hexstr=order.taker_fee_asset_data),
    )


__all__ = [
    "ORDER_COMPONENTS",
    "EXCHANGE_ABI",
    "FORWARDER_ABI",
    "ERC20_ABI",
    "ERC721_ABI",
    "ERC1155_ABI",
    "order_struct",
]
