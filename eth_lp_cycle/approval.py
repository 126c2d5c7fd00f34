"""ERC-20 approvals for the router.

Before the router can pull our tokens it needs an allowance at least
as big as what we deposit. Some tokens, most notably USDT on Ethereum mainnet,
revert if you change a non-zero allowance to another non-zero value,
so for them we first set the allowance to zero.
"""

import datetime
import logging
import time
from typing import Callable, Iterable, Union

from eth_typing import HexAddress
from web3 import Web3

from eth_lp_cycle.abi import ERC20_ABI, get_deployed_contract
from eth_lp_cycle.chain_client import ChainClient
from eth_lp_cycle.constants import DEFAULT_ALLOWANCE_RESET_SYMBOLS, DEFAULT_APPROVAL_SETTLE_DELAY

logger = logging.getLogger(__name__)


def get_balance_and_approve(
    client: ChainClient,
    token_address: Union[HexAddress, str],
    spender: Union[HexAddress, str],
    allowance_reset_symbols: Iterable[str] = DEFAULT_ALLOWANCE_RESET_SYMBOLS,
    settle_delay: datetime.timedelta = DEFAULT_APPROVAL_SETTLE_DELAY,
    sleep_func: Callable[[float], None] = time.sleep,
) -> int:
    """Make sure the spender can move our whole token balance.

    - If the current allowance already covers the balance, no transactions are made

    - Otherwise approve exactly the current balance, resetting the allowance
      to zero first for tokens in ``allowance_reset_symbols``

    - Every approval transaction estimates its own gas and we wait it to confirm

    Example:

    .. code-block:: python

        balance = get_balance_and_approve(client, usdt_address, router_address)
        # Router can now pull `balance` USDT from us

    :param token_address:
        ERC-20 token, can be a pool LP token

    :param spender:
        The contract that will pull the tokens

    :param settle_delay:
        Pause after each approval transaction

    :param sleep_func:
        Used to pause, swap out in tests

    :return:
        Our token balance in raw units, as read before any approval
    """
    token = get_deployed_contract(client.web3, ERC20_ABI, token_address)
    owner = client.address
    spender = Web3.to_checksum_address(spender)

    balance = client.read(token.functions.balanceOf(owner))
    allowance = client.read(token.functions.allowance(owner, spender))

    if allowance >= balance:
        logger.debug("Token %s allowance %d covers balance %d", token.address, allowance, balance)
        return balance

    ticker = client.read(token.functions.symbol())

    if allowance > 0 and ticker in allowance_reset_symbols:
        receipt = client.transact_and_wait(token.functions.approve(spender, 0))
        logger.info("Revoke %s, tx hash: %s", ticker, receipt["transactionHash"].hex())
        sleep_func(settle_delay.total_seconds())

    receipt = client.transact_and_wait(token.functions.approve(spender, balance))
    logger.info("Approve %s, tx hash: %s", ticker, receipt["transactionHash"].hex())
    sleep_func(settle_delay.total_seconds())

    return balance
