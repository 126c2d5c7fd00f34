"""Revert reason extraction.

Ethereum nodes do not store the transaction failure reason.
We replay the failed transaction with ``eth_call`` against the block before it was mined.

Further reading

- `Web3.py Patterns: Revert Reason Lookups <https://snakecharmers.ethereum.org/web3py-revert-reason-parsing/>`_
"""

import logging
from typing import Union

from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import ContractLogicError, Web3RPCError

logger = logging.getLogger(__name__)


def fetch_transaction_revert_reason(
    web3: Web3,
    tx_hash: Union[HexBytes, str],
    unknown_error_message="<could not extract the revert reason>",
) -> str:
    """Gets a transaction revert reason.

    - The node must still have the state of the block before the transaction, or the reason might be wrong

    :param web3: Our JSON-RPC connection

    :param tx_hash: Transaction hash of which reason we extract by simulation.

    :param unknown_error_message:
        Return this message if the revert reason extraction fails.

    :return: The revert reason of the placeholder message if we could not extract the reason somehow.
    """

    tx_hash = HexBytes(tx_hash)
    tx = web3.eth.get_transaction(tx_hash)

    # build a new transaction to replay:
    replay_tx = {
        "to": tx["to"],
        "from": tx["from"],
        "value": tx["value"],
        "data": tx["input"],
        "gas": tx["gas"],
    }

    try:
        web3.eth.call(replay_tx, tx["blockNumber"] - 1)
    except ContractLogicError as e:
        return e.args[0]
    except Web3RPCError as e:
        return str(e)
    except ValueError as e:
        # Raw JSON-RPC error payload
        logger.debug("Revert exception result is: %s", e)
        data = e.args[0] if e.args else None
        if type(data) == str:
            return data
        elif isinstance(data, dict) and "message" in data:
            return data["message"]
        return unknown_error_message

    logger.warning("Transaction %s succeeded when we tried to fetch its revert reason. Maybe the chain tip is unstable or the failure was caused by slippage.", tx_hash.hex())
    return unknown_error_message
