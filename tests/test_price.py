"""LP token price estimation."""

from decimal import Decimal

import pytest

from eth_lp_cycle.exceptions import PricingPreconditionError
from eth_lp_cycle.price import calculate_lp_token_prices, estimate_lp_token_prices
from eth_lp_cycle.testing import SimulatedChainClient


def test_calculate_lp_token_prices():
    """Half of the LP supply against each reserve."""
    price0, price1 = calculate_lp_token_prices(1000, 2000, 1000)
    assert price0 == Decimal("0.5")
    assert price1 == Decimal("0.25")


def test_calculate_lp_token_prices_odd_supply():
    """Half supply is rounded down to whole LP units."""
    price0, price1 = calculate_lp_token_prices(1000, 2000, 1001)
    assert price0 == Decimal("0.5")
    assert price1 == Decimal("0.25")


def test_calculate_lp_token_prices_large_numbers():
    """No precision lost with realistic 18 decimal amounts."""
    price0, price1 = calculate_lp_token_prices(4 * 10**24, 10**18, 2 * 10**30)
    assert price0 == Decimal(250_000)
    assert price1 == Decimal(10**12)


@pytest.mark.parametrize("reserve0,reserve1", [(0, 2000), (1000, 0)])
def test_zero_reserve(reserve0, reserve1):
    """Empty side of the pool cannot be priced."""
    with pytest.raises(PricingPreconditionError):
        calculate_lp_token_prices(reserve0, reserve1, 1000)


def test_estimate_lp_token_prices(client: SimulatedChainClient, pool):
    """Read prices from the pool."""
    price0, price1 = estimate_lp_token_prices(client, pool)
    assert price0 == Decimal("0.5")
    assert price1 == Decimal("0.25")


def test_estimate_lp_token_prices_idempotent(client: SimulatedChainClient, pool):
    """Same state, same prices."""
    assert estimate_lp_token_prices(client, pool) == estimate_lp_token_prices(client, pool)


def test_estimate_lp_token_prices_follows_state(client: SimulatedChainClient, pool):
    """Prices are read fresh every time."""
    client.pools[pool].reserve0 = 500 * 10**18
    price0, price1 = estimate_lp_token_prices(client, pool)
    assert price0 == Decimal(1)
    assert price1 == Decimal("0.25")
