"""zkSync Era mainnet read-only checks.

- Resolve a known SyncSwap classic pool and price its LP token

- No transactions are made
"""
import os
from decimal import Decimal

import pytest
from web3 import HTTPProvider, Web3

from eth_lp_cycle.chain_client import Web3ChainClient
from eth_lp_cycle.config import LiquidityCycleConfig
from eth_lp_cycle.constants import SYNCSWAP_DEPLOYMENTS
from eth_lp_cycle.hotwallet import HotWallet
from eth_lp_cycle.pool import fetch_pool_state, resolve_pool
from eth_lp_cycle.price import estimate_lp_token_prices

JSON_RPC_ZKSYNC = os.environ.get("JSON_RPC_ZKSYNC")

pytestmark = pytest.mark.skipif(JSON_RPC_ZKSYNC is None, reason="JSON_RPC_ZKSYNC needed to run these tests")

#: Bridged USDC.e on zkSync Era
USDC_E = "0x3355df6D4c9C3035724Fd0e3914dE96A5a83aaf4"

#: WETH on zkSync Era
WETH = "0x5AEa5775959fBC2557Cc8789bC1bf90A239D9a91"


@pytest.fixture(scope="module")
def client() -> Web3ChainClient:
    web3 = Web3(HTTPProvider(JSON_RPC_ZKSYNC))
    return Web3ChainClient(web3, HotWallet.create_for_testing())


def test_zksync_usdc_weth_pool(client: Web3ChainClient):
    """USDC.e-WETH pool exists and has liquidity."""
    assert client.chain_id == SYNCSWAP_DEPLOYMENTS["zksync"]["chain_id"]
    config = LiquidityCycleConfig()

    pool_address = resolve_pool(client, config.factory_address, USDC_E, WETH)
    assert pool_address == resolve_pool(client, config.factory_address, WETH, USDC_E)

    state = fetch_pool_state(client, pool_address, USDC_E, WETH)
    assert {state.token0, state.token1} == {Web3.to_checksum_address(USDC_E), Web3.to_checksum_address(WETH)}
    assert state.reserve0 > 0
    assert state.reserve1 > 0

    price0, price1 = estimate_lp_token_prices(client, pool_address)
    assert price0 > Decimal(0)
    assert price1 > Decimal(0)
