"""Gas helpers."""
from unittest.mock import MagicMock, Mock

import pytest
from web3.contract.contract import ContractFunction

from eth_lp_cycle.gas import add_gas_buffer, apply_gas, estimate_gas_limit, fetch_gas_price


@pytest.mark.parametrize(
    "gas_limit,buffer_bps,expected",
    [
        (200_000, 1000, 220_000),
        (260_000, 1000, 286_000),
        (33, 1000, 36),
        (200_000, 0, 200_000),
    ],
)
def test_add_gas_buffer(gas_limit, buffer_bps, expected):
    assert add_gas_buffer(gas_limit, buffer_bps) == expected


def test_add_gas_buffer_needs_int():
    with pytest.raises(AssertionError):
        add_gas_buffer(200_000.0, 1000)


def test_apply_gas():
    """Legacy gas price replaces EIP-1559 fee fields."""
    tx = {"from": "0x0", "maxFeePerGas": 1, "maxPriorityFeePerGas": 1}
    apply_gas(tx, 100_000, 25_000_000)
    assert tx == {"from": "0x0", "gas": 100_000, "gasPrice": 25_000_000}


def test_estimate_gas_limit():
    func = Mock(spec=ContractFunction)
    func.estimate_gas.return_value = 46_000
    sender = "0x" + "11" * 20
    assert estimate_gas_limit(func, sender) == 46_000
    func.estimate_gas.assert_called_once_with({"from": sender})


def test_fetch_gas_price():
    web3 = MagicMock()
    web3.eth.gas_price = 25_000_000
    assert fetch_gas_price(web3) == 25_000_000
