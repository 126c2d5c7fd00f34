"""Gas price and gas limit helpers.

zkSync Era and the other chains we target take a flat ``gasPrice``,
so we use the node suggested legacy gas price as is.
"""

import logging

from eth_typing import HexAddress
from web3 import Web3
from web3.contract.contract import ContractFunction

from eth_lp_cycle.constants import BPS

logger = logging.getLogger(__name__)


def fetch_gas_price(web3: Web3) -> int:
    """Get the node suggested gas price in wei.

    Same as ``eth_gasPrice`` JSON-RPC call.
    """
    gas_price = web3.eth.gas_price
    logger.debug("Gas price is %.4f gwei", gas_price / 10**9)
    return gas_price


def estimate_gas_limit(func: ContractFunction, sender: HexAddress) -> int:
    """Estimate gas for a bound contract call sent by ``sender``.

    Raises whatever web3.py raises when the call would revert.
    """
    assert isinstance(func, ContractFunction), f"Got: {type(func)}"
    return func.estimate_gas({"from": sender})


def add_gas_buffer(gas_limit: int, buffer_bps: int) -> int:
    """Increase a gas limit by a percentage given in basis points.

    Example:

    .. code-block:: python

        # 10% more gas
        assert add_gas_buffer(200_000, 1000) == 220_000

    :return:
        Rounded down gas limit
    """
    assert type(gas_limit) == int, f"Gas limit must be int, got {type(gas_limit)}"
    assert buffer_bps >= 0
    return gas_limit * (BPS + buffer_bps) // BPS


def apply_gas(tx: dict, gas_limit: int, gas_price: int) -> dict:
    """Apply gas limit and legacy gas price to a raw transaction dict.

    :return:
        Mutated dict
    """
    assert isinstance(tx, dict), f"Expected tx to be dict, got {type(tx)}"
    assert gas_limit > 0, f"Bad gas limit {gas_limit}"

    tx["gas"] = gas_limit
    tx["gasPrice"] = gas_price

    # Cannot have both maxFeePerGas + maxPriorityFeePerGas and gasPrice
    tx.pop("maxFeePerGas", None)
    tx.pop("maxPriorityFeePerGas", None)
    return tx
