"""LP token prices of pool tokens.

How many LP tokens one raw unit of a pool token is worth,
assuming it is half of a balanced contribution.
"""

import decimal
import logging
from decimal import Decimal
from typing import Union

from eth_typing import HexAddress

from eth_lp_cycle.chain_client import ChainClient
from eth_lp_cycle.exceptions import PricingPreconditionError
from eth_lp_cycle.pool import get_pool_contract

logger = logging.getLogger(__name__)

#: Enough digits for uint256 * uint256 products
DECIMAL_PRECISION = 160


def calculate_lp_token_prices(reserve0: int, reserve1: int, total_supply: int) -> tuple[Decimal, Decimal]:
    """Calculate LP token amount per one raw unit of token0 and token1.

    Example:

    .. code-block:: python

        price0, price1 = calculate_lp_token_prices(1000, 2000, 1000)
        assert price0 == Decimal("0.5")
        assert price1 == Decimal("0.25")

    :raise PricingPreconditionError:
        The pool is empty on one side
    """
    assert type(total_supply) == int, f"Got {type(total_supply)}"

    if reserve0 == 0 or reserve1 == 0:
        raise PricingPreconditionError(f"Cannot price LP token against a zero reserve: {reserve0}, {reserve1}")

    half_supply = total_supply // 2

    with decimal.localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        price0 = Decimal(half_supply) / Decimal(reserve0)
        price1 = Decimal(half_supply) / Decimal(reserve1)

    return price0, price1


def estimate_lp_token_prices(client: ChainClient, pool_address: Union[HexAddress, str]) -> tuple[Decimal, Decimal]:
    """Read the pool and get the LP token prices of its tokens.

    Valid at the block of the read only.

    :return:
        ``(price0, price1)`` tuple in the pool's canonical token order
    """
    pool = get_pool_contract(client, pool_address)
    reserve0, reserve1 = client.read(pool.functions.getReserves())
    total_supply = client.read(pool.functions.totalSupply())
    price0, price1 = calculate_lp_token_prices(reserve0, reserve1, total_supply)
    logger.debug("Pool %s reserves %d, %d, LP supply %d, LP prices %s, %s", pool.address, reserve0, reserve1, total_supply, price0, price1)
    return price0, price1
