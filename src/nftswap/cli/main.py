"""
nftswap CLI - inspect and track 0x v3 swap orders.
"""

import asyncio
import json
from pathlib import Path

import click
import structlog
from tabulate import tabulate

from nftswap.chain.ledger import LedgerClient
from nftswap.config import config
from nftswap.errors import NftSwapError
from nftswap.orders.asset_data import decode_asset_data
from nftswap.orders.codec import hash_order
from nftswap.orders.models import Order, OrderInfo, SignedOrder
from nftswap.orders.signing import recover_order_signer, verify_order_signature
from nftswap.swap import ContractOverrides, NftSwap


# Configure logging
structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
)

logger = structlog.get_logger()


def _load_order(path: str) -> Order:
    data = json.loads(Path(path).read_text())
    if "signature" in data:
        return SignedOrder.from_dict(data)
    return Order.from_dict(data)


def _info_table(info: OrderInfo) -> str:
    return tabulate(
        [
            ["Order hash", info.order_hash],
            ["Status", info.order_status.name],
            ["Taker amount filled", info.order_taker_asset_filled_amount],
        ],
        tablefmt="simple",
    )


async def _connect(order: Order, rpc_url: str) -> NftSwap:
    ledger = LedgerClient.from_rpc_url(rpc_url)
    setup = await NftSwap.create(
        ledger,
        chain_id=order.chain_id,
        overrides=ContractOverrides(exchange_address=order.exchange_address),
    )
    return setup.swap


@click.group()
@click.version_option(version="1.0.0")
@click.option('--rpc-url', default=None, help='JSON-RPC endpoint (default: CHAIN_RPC_URL)')
@click.pass_context
def cli(ctx, rpc_url):
    """
    nftswap CLI - inspect and track swap orders.

    \b
    Examples:
        nftswap hash order.json             Print the EIP-712 order hash
        nftswap verify signed_order.json    Check the maker signature
        nftswap status order.json           Read order status from the exchange
        nftswap wait order.json             Wait until filled or cancelled
    """
    ctx.ensure_object(dict)
    ctx.obj['rpc_url'] = rpc_url or config.chain.rpc_url


@cli.command('hash')
@click.argument('order_file', type=click.Path(exists=True))
def hash_command(order_file):
    """Print the EIP-712 hash of an order."""
    order = _load_order(order_file)
    click.echo(hash_order(order, order.chain_id, order.exchange_address))


@cli.command()
@click.argument('order_file', type=click.Path(exists=True))
def verify(order_file):
    """Verify the maker signature of a signed order."""
    order = _load_order(order_file)
    if not isinstance(order, SignedOrder):
        raise click.UsageError("Order file has no signature")

    valid = verify_order_signature(
        order, order.signature, order.chain_id, order.exchange_address
    )
    try:
        recovered = recover_order_signer(
            order, order.signature, order.chain_id, order.exchange_address
        )
    except ValueError as e:
        recovered = f"unrecoverable ({e})"

    click.echo(tabulate(
        [
            ["Maker", order.maker_address],
            ["Recovered signer", recovered],
            ["Valid", "yes" if valid else "no"],
        ],
        tablefmt="simple",
    ))
    if not valid:
        raise SystemExit(1)


@cli.command()
@click.argument('order_file', type=click.Path(exists=True))
@click.pass_context
def status(ctx, order_file):
    """Read the order's status from the exchange contract."""
    order = _load_order(order_file)

    async def get_info():
        swap = await _connect(order, ctx.obj['rpc_url'])
        return await swap.get_order_info(order)

    click.echo(_info_table(asyncio.run(get_info())))


@cli.command()
@click.argument('order_file', type=click.Path(exists=True))
@click.option('--timeout-ms', type=int, default=None, help='Give up after this many milliseconds')
@click.option('--strict', is_flag=True, help='Fail if the order ends in any state but filled')
@click.pass_context
def wait(ctx, order_file, timeout_ms, strict):
    """Wait until the order is filled, cancelled or expired."""
    order = _load_order(order_file)

    async def wait_for_order():
        swap = await _connect(order, ctx.obj['rpc_url'])
        return await swap.wait_until_order_filled_or_cancelled(
            order,
            timeout_ms=timeout_ms,
            throw_if_status_other_than_fillable_or_filled=strict,
        )

    try:
        info = asyncio.run(wait_for_order())
    except NftSwapError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    if info is None:
        click.echo("Timed out while order still fillable")
        raise SystemExit(2)

    click.echo(_info_table(info))


@cli.command('decode-asset')
@click.argument('asset_data')
def decode_asset(asset_data):
    """Decode 0x asset data."""
    try:
        decoded = decode_asset_data(asset_data)
    except ValueError as e:
        raise click.BadParameter(str(e))

    click.echo(tabulate(
        [[key, value] for key, value in decoded.items()],
        headers=["Field", "Value"],
        tablefmt="simple",
    ))


if __name__ == '__main__':
    cli()
