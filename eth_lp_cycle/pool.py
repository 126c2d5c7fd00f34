"""Classic pool lookup and state.

A pool may order its tokens differently from how the caller gave them,
so everything here follows the pool's own ``token0()``.
"""

import logging
from dataclasses import dataclass
from typing import Union

from eth_typing import HexAddress
from web3 import Web3
from web3.contract import Contract

from eth_lp_cycle.abi import FACTORY_ABI, POOL_ABI, ZERO_ADDRESS, get_deployed_contract
from eth_lp_cycle.chain_client import ChainClient
from eth_lp_cycle.exceptions import LiquidityCycleError, PoolNotFoundError

logger = logging.getLogger(__name__)


class UnmatchedToken(LiquidityCycleError):
    """Token was not in the pool."""


@dataclass(frozen=True, slots=True)
class PoolState:
    """Sampled reserves of a classic pool.

    Reserves are returned in raw token amounts.
    """

    #: Pool contract address, also the LP token address
    address: HexAddress

    #: Pool's canonical first token
    token0: HexAddress

    #: The other token
    token1: HexAddress

    #: Reserve of token0
    reserve0: int

    #: Reserve of token1
    reserve1: int

    #: LP tokens in circulation
    total_supply: int

    def __repr__(self):
        return f"<Pool {self.address} {self.token0}: {self.reserve0:,} {self.token1}: {self.reserve1:,}>"

    def get_reserve_for_token(self, token_address: Union[HexAddress, str]) -> int:
        """Get the reserve of a given pool token.

        :raise UnmatchedToken:
            The token is not in this pool
        """
        token_address = Web3.to_checksum_address(token_address)
        if token_address == self.token0:
            return self.reserve0
        elif token_address == self.token1:
            return self.reserve1
        else:
            raise UnmatchedToken(f"Unknown pool token {token_address}, we have {self.token0} and {self.token1}")


def get_pool_contract(client: ChainClient, pool_address: Union[HexAddress, str]) -> Contract:
    """Get the pool contract proxy."""
    return get_deployed_contract(client.web3, POOL_ABI, pool_address)


def resolve_pool(
    client: ChainClient,
    factory_address: Union[HexAddress, str],
    token_a: Union[HexAddress, str],
    token_b: Union[HexAddress, str],
) -> HexAddress:
    """Find the pool of a token pair using the factory.

    We never create a missing pool.

    :raise PoolNotFoundError:
        The factory does not know the pair
    """
    factory = get_deployed_contract(client.web3, FACTORY_ABI, factory_address)
    token_a = Web3.to_checksum_address(token_a)
    token_b = Web3.to_checksum_address(token_b)
    pool_address = client.read(factory.functions.getPool(token_a, token_b))

    if pool_address == ZERO_ADDRESS:
        raise PoolNotFoundError(f"Pool does not exist for {token_a} and {token_b} in factory {factory.address}")

    pool_address = Web3.to_checksum_address(pool_address)
    logger.debug("Resolved pool %s for %s and %s", pool_address, token_a, token_b)
    return pool_address


def derive_token1(
    token0: Union[HexAddress, str],
    token_a: Union[HexAddress, str],
    token_b: Union[HexAddress, str],
) -> HexAddress:
    """Pick the pool's second token among the caller's tokens.

    :param token0:
        What the pool reports as its ``token0()``

    :return:
        ``token_b`` if ``token0`` is ``token_a``, otherwise ``token_a``
    """
    token0 = Web3.to_checksum_address(token0)
    token_a = Web3.to_checksum_address(token_a)
    token_b = Web3.to_checksum_address(token_b)

    if token0 not in (token_a, token_b):
        raise UnmatchedToken(f"Pool token0 {token0} is neither {token_a} or {token_b}")

    return token_b if token0 == token_a else token_a


def fetch_pool_state(
    client: ChainClient,
    pool_address: Union[HexAddress, str],
    token_a: Union[HexAddress, str],
    token_b: Union[HexAddress, str],
) -> PoolState:
    """Read pool reserves in the pool's canonical token order.

    Example:

    .. code-block:: python

        pool_address = resolve_pool(client, config.factory_address, usdc, weth)
        state = fetch_pool_state(client, pool_address, usdc, weth)
        usdc_reserve = state.get_reserve_for_token(usdc)
    """
    pool = get_pool_contract(client, pool_address)
    reserve0, reserve1 = client.read(pool.functions.getReserves())
    total_supply = client.read(pool.functions.totalSupply())
    token0 = Web3.to_checksum_address(client.read(pool.functions.token0()))
    token1 = derive_token1(token0, token_a, token_b)
    return PoolState(
        address=pool.address,
        token0=token0,
        token1=token1,
        reserve0=reserve0,
        reserve1=reserve1,
        total_supply=total_supply,
    )
