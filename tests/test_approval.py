"""Router approvals."""

import datetime

import pytest

from eth_lp_cycle.approval import get_balance_and_approve
from eth_lp_cycle.exceptions import EstimationError, TransactionRevertedError
from eth_lp_cycle.testing import SimulatedChainClient


@pytest.fixture()
def router(client: SimulatedChainClient) -> str:
    return client.router_address


@pytest.fixture()
def usdt(client: SimulatedChainClient) -> str:
    """Token refusing non-zero to non-zero allowance changes."""
    return client.create_token("USDT", requires_allowance_reset=True)


@pytest.mark.parametrize(
    "balance,allowance",
    [
        (100, 100),
        (100, 200),
        (0, 0),
        (0, 5),
    ],
)
def test_allowance_covers_balance(client: SimulatedChainClient, usdc, router, balance, allowance):
    """No transactions when the router can already pull everything."""
    client.mint(usdc, client.address, balance)
    client.set_allowance(usdc, client.address, router, allowance)

    assert get_balance_and_approve(client, usdc, router, sleep_func=client.sleep) == balance
    assert client.transactions == []
    assert client.timeline == []
    assert client.allowance(usdc, router) == allowance


def test_approve_balance(client: SimulatedChainClient, usdc, router):
    """Approve exactly the balance with its own gas estimate and pause after."""
    client.mint(usdc, client.address, 100)
    client.set_allowance(usdc, client.address, router, 10)

    assert get_balance_and_approve(client, usdc, router, sleep_func=client.sleep) == 100

    assert client.allowance(usdc, router) == 100
    assert client.timeline == [
        ("tx", "approve", (router, 100)),
        ("sleep", 3.0),
    ]
    tx = client.transactions[0]
    assert tx.to == usdc
    assert tx.gas_limit == 46_000
    assert tx.gas_price == client.gas_price
    assert client.confirmed_tx_hashes == [tx.tx_hash]


def test_usdt_allowance_reset(client: SimulatedChainClient, usdt, router):
    """USDT with an existing allowance is first approved to zero."""
    client.mint(usdt, client.address, 100)
    client.set_allowance(usdt, client.address, router, 10)

    assert get_balance_and_approve(client, usdt, router, sleep_func=client.sleep) == 100

    assert client.allowance(usdt, router) == 100
    assert client.timeline == [
        ("tx", "approve", (router, 0)),
        ("sleep", 3.0),
        ("tx", "approve", (router, 100)),
        ("sleep", 3.0),
    ]
    assert all(tx.status == 1 for tx in client.transactions)


def test_usdt_zero_allowance(client: SimulatedChainClient, usdt, router):
    """Nothing to reset if there is no allowance."""
    client.mint(usdt, client.address, 100)

    get_balance_and_approve(client, usdt, router, sleep_func=client.sleep)

    assert [tx.args for tx in client.transactions] == [(router, 100)]


def test_allowance_reset_only_for_listed_symbols(client: SimulatedChainClient, router):
    """A quirky token not on the list fails on the approval."""
    quirky = client.create_token("QRK", requires_allowance_reset=True)
    client.mint(quirky, client.address, 100)
    client.set_allowance(quirky, client.address, router, 10)

    with pytest.raises(EstimationError):
        get_balance_and_approve(client, quirky, router, sleep_func=client.sleep)

    assert client.transactions == []


def test_custom_allowance_reset_symbols(client: SimulatedChainClient, router):
    """Reset list and settle delay are configurable."""
    quirky = client.create_token("QRK", requires_allowance_reset=True)
    client.mint(quirky, client.address, 100)
    client.set_allowance(quirky, client.address, router, 10)

    get_balance_and_approve(
        client,
        quirky,
        router,
        allowance_reset_symbols={"QRK"},
        settle_delay=datetime.timedelta(0),
        sleep_func=client.sleep,
    )

    assert client.timeline == [
        ("tx", "approve", (router, 0)),
        ("sleep", 0.0),
        ("tx", "approve", (router, 100)),
        ("sleep", 0.0),
    ]


def test_approve_reverts(client: SimulatedChainClient, usdc, router):
    """Failed approval aborts."""
    client.mint(usdc, client.address, 100)
    client.reverting_functions.add("approve")

    with pytest.raises(TransactionRevertedError) as exc_info:
        get_balance_and_approve(client, usdc, router, sleep_func=client.sleep)

    assert exc_info.value.tx_hash == client.transactions[0].tx_hash
    assert client.confirmed_tx_hashes == []
    assert client.allowance(usdc, router) == 0
    # No pause after a failure
    assert ("sleep", 3.0) not in client.timeline
