"""Add liquidity to a pool and remove it right away.

Deposits the whole wallet balance of both tokens and then burns all received LP tokens.

To run:

.. code-block:: shell

    export KEY=...
    export JSON_RPC_URL=https://mainnet.era.zksync.io
    export TOKEN_A=0x3355df6D4c9C3035724Fd0e3914dE96A5a83aaf4
    export TOKEN_B=0x5AEa5775959fBC2557Cc8789bC1bf90A239D9a91

    python scripts/add-and-remove-liquidity.py
"""

import logging

import typer
from web3 import HTTPProvider, Web3

from eth_lp_cycle.chain_client import Web3ChainClient
from eth_lp_cycle.config import create_config_from_env, read_private_key
from eth_lp_cycle.constants import SYNCSWAP_DEPLOYMENTS
from eth_lp_cycle.hotwallet import HotWallet
from eth_lp_cycle.liquidity import add_and_remove_liquidity
from eth_lp_cycle.utils import setup_console_logging

logger = logging.getLogger(__name__)


def main(
    token_a: str = typer.Option(..., envvar="TOKEN_A", help="First token of the pair"),
    token_b: str = typer.Option(..., envvar="TOKEN_B", help="Second token of the pair"),
    json_rpc_url: str = typer.Option(SYNCSWAP_DEPLOYMENTS["zksync"]["json_rpc_url"], envvar="JSON_RPC_URL", help="JSON RPC URL"),
):
    setup_console_logging()

    # KEY is only read from the environment, never from the command line
    private_key = read_private_key("KEY")
    config = create_config_from_env()

    web3 = Web3(HTTPProvider(json_rpc_url))
    hot_wallet = HotWallet.from_private_key(private_key)
    client = Web3ChainClient(
        web3,
        hot_wallet,
        confirmations=config.confirmations,
        confirmation_timeout=config.confirmation_timeout,
        poll_delay=config.poll_delay,
    )

    result = add_and_remove_liquidity(client, config, token_a, token_b)
    typer.echo(f"Deposit tx: {result.deposit_tx_hash.hex()}")
    typer.echo(f"Withdrawal tx: {result.withdraw_tx_hash.hex()}")


if __name__ == "__main__":
    typer.run(main)
