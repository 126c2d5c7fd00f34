"""Transaction confirmation monitoring.

Wait a broadcasted transaction to be mined and read back its receipt.
"""

import datetime
import logging
import time
from typing import Union

from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import TransactionNotFound
from web3.types import TxReceipt

from eth_lp_cycle.exceptions import ConfirmationTimedOut

logger = logging.getLogger(__name__)


def wait_transaction_to_complete(
    web3: Web3,
    tx_hash: Union[HexBytes, str],
    confirmations: int = 1,
    max_timeout=datetime.timedelta(minutes=5),
    poll_delay=datetime.timedelta(seconds=1),
) -> TxReceipt:
    """Watch a transaction until it has enough confirmations.

    Use simple poll loop.

    Example:

    .. code-block:: python

        tx_hash = web3.eth.send_raw_transaction(signed_tx.raw_transaction)
        receipt = wait_transaction_to_complete(web3, tx_hash)
        assert receipt["status"] == 1  # tx success

    :param tx_hash:
        Transaction hash

    :param confirmations:
        How many blocks must have seen the transaction.
        The block where the transaction was mined counts as the first confirmation.

    :raise ConfirmationTimedOut:
        If we do not get the receipt within ``max_timeout``

    :return:
        Transaction receipt. The receipt may contain a failed transaction.
    """

    assert isinstance(poll_delay, datetime.timedelta)
    assert isinstance(max_timeout, datetime.timedelta)
    assert confirmations >= 1

    tx_hash = HexBytes(tx_hash)

    logger.info("Waiting tx %s to confirm in %d blocks, timeout is %s", tx_hash.hex(), confirmations, max_timeout)

    deadline = time.monotonic() + max_timeout.total_seconds()

    while True:
        try:
            receipt = web3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound as e:
            # BNB Chain get does this instead of returning None
            logger.debug("Transaction not found yet: %s", e)
            receipt = None

        if receipt:
            tx_confirmations = web3.eth.block_number - receipt["blockNumber"] + 1
            if tx_confirmations >= confirmations:
                logger.debug("Confirmed tx %s with %d confirmations", tx_hash.hex(), tx_confirmations)
                return receipt
            logger.debug("Still waiting more confirmations. Tx %s with %d confirmations, %d needed", tx_hash.hex(), tx_confirmations, confirmations)

        if time.monotonic() >= deadline:
            raise ConfirmationTimedOut(f"Transaction {tx_hash.hex()} not confirmed in {max_timeout}")

        time.sleep(poll_delay.total_seconds())
