"""Add and remove liquidity in one go.

Deposit our whole balance of two tokens to their pool, then burn all the received
LP tokens right away.

Example:

.. code-block:: python

    from web3 import HTTPProvider, Web3

    from eth_lp_cycle.chain_client import Web3ChainClient
    from eth_lp_cycle.config import create_config_from_env, read_private_key
    from eth_lp_cycle.hotwallet import HotWallet
    from eth_lp_cycle.liquidity import add_and_remove_liquidity

    web3 = Web3(HTTPProvider("https://mainnet.era.zksync.io"))
    client = Web3ChainClient(web3, HotWallet.from_private_key(read_private_key()))
    result = add_and_remove_liquidity(client, create_config_from_env(), usdc_address, weth_address)
    print(f"Deposit {result.deposit_tx_hash.hex()}, withdrawal {result.withdraw_tx_hash.hex()}")

A failure halfway is not undone: if the withdrawal fails after a successful deposit,
the LP tokens stay in the wallet and need to be handled manually.
"""

import decimal
import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Sequence, Union

from eth_typing import HexAddress
from hexbytes import HexBytes

from eth_lp_cycle.abi import ROUTER_ABI, ZERO_ADDRESS, encode_deposit_data, encode_withdraw_data, get_deployed_contract
from eth_lp_cycle.approval import get_balance_and_approve
from eth_lp_cycle.chain_client import ChainClient
from eth_lp_cycle.config import LiquidityCycleConfig
from eth_lp_cycle.constants import BPS
from eth_lp_cycle.exceptions import LiquidityCycleError
from eth_lp_cycle.pool import fetch_pool_state, resolve_pool
from eth_lp_cycle.price import DECIMAL_PRECISION, estimate_lp_token_prices

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LiquidityCycleResult:
    """What happened during a completed add-and-remove liquidity cycle.

    Token amounts are raw and in the pool's canonical token order.
    """

    #: Pool and LP token address
    pool_address: HexAddress

    #: Pool's first token
    token0: HexAddress

    #: Pool's second token
    token1: HexAddress

    #: Deposited token0, token1 amounts
    deposited_amounts: tuple[int, int]

    #: Least LP tokens we accepted from the deposit
    min_liquidity: int

    #: LP tokens burned in the withdrawal
    liquidity: int

    #: Least token0, token1 we accepted from the withdrawal
    min_withdraw_amounts: tuple[int, int]

    #: addLiquidity2() transaction
    deposit_tx_hash: HexBytes

    #: burnLiquidity() transaction
    withdraw_tx_hash: HexBytes


def calculate_min_liquidity(
    amounts: Sequence[int],
    prices: Sequence[Decimal],
    slippage_bps: int,
) -> int:
    """Least LP tokens we accept for a deposit.

    Value the deposit in LP tokens using the per-token LP prices
    and take the slippage haircut off.

    Example:

    .. code-block:: python

        # 100 * 0.5 + 50 * 0.25 = 62.5 LP, minus 5%
        assert calculate_min_liquidity([100, 50], [Decimal("0.5"), Decimal("0.25")], 500) == 59

    :return:
        Rounded down raw LP token amount
    """
    assert len(amounts) == len(prices)
    with decimal.localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        estimated = sum((Decimal(amount) * price for amount, price in zip(amounts, prices)), Decimal(0))
        return int(estimated * (BPS - slippage_bps) / BPS)


def calculate_min_amounts(amounts: Sequence[int], slippage_bps: int) -> list[int]:
    """Least tokens we accept back per token, rounded down."""
    return [amount * (BPS - slippage_bps) // BPS for amount in amounts]


def add_and_remove_liquidity(
    client: ChainClient,
    config: LiquidityCycleConfig,
    token_a: Union[HexAddress, str],
    token_b: Union[HexAddress, str],
    sleep_func: Callable[[float], None] = time.sleep,
) -> LiquidityCycleResult:
    """Deposit all of our ``token_a`` and ``token_b`` to their pool and withdraw it back.

    - Resolves the pool using the factory, we never create pools

    - Approves the router for both tokens and later for the LP token

    - Deposit is protected with the minimum LP amount, the withdrawal with minimum token amounts

    - Nothing is retried. Any error aborts the cycle. If the error is a :py:class:`LiquidityCycleError`
      the transactions confirmed before the failure are in its ``completed_tx_hashes``

    :param client:
        Chain access and the signer

    :param config:
        Router, factory and the cycle policy

    :param sleep_func:
        Used for the settle pauses, swap out in tests
    """
    started_at = len(client.confirmed_tx_hashes)
    try:
        return _add_and_remove_liquidity(client, config, token_a, token_b, sleep_func)
    except Exception as e:
        completed = client.confirmed_tx_hashes[started_at:]
        if isinstance(e, LiquidityCycleError):
            e.completed_tx_hashes = completed
        logger.error(
            "Liquidity cycle for %s and %s failed: %s. Transactions completed before the failure: %s",
            token_a,
            token_b,
            e,
            [tx_hash.hex() for tx_hash in completed] or "none",
        )
        raise


def _add_and_remove_liquidity(
    client: ChainClient,
    config: LiquidityCycleConfig,
    token_a: Union[HexAddress, str],
    token_b: Union[HexAddress, str],
    sleep_func: Callable[[float], None],
) -> LiquidityCycleResult:
    web3 = client.web3
    router = get_deployed_contract(web3, ROUTER_ABI, config.router_address)

    pool_address = resolve_pool(client, config.factory_address, token_a, token_b)
    pool = fetch_pool_state(client, pool_address, token_a, token_b)

    for token in (token_a, token_b):
        logger.info("Token address %s has %d reserves", token, pool.get_reserve_for_token(token))

    balances = []
    for token in (pool.token0, pool.token1):
        balance = get_balance_and_approve(
            client,
            token,
            config.router_address,
            allowance_reset_symbols=config.allowance_reset_symbols,
            settle_delay=config.approval_settle_delay,
            sleep_func=sleep_func,
        )
        balances.append(balance)

    prices = estimate_lp_token_prices(client, pool.address)
    min_liquidity = calculate_min_liquidity(balances, prices, config.slippage_bps)

    deposit_call = router.functions.addLiquidity2(
        pool.address,
        [
            (pool.token0, balances[0]),
            (pool.token1, balances[1]),
        ],
        encode_deposit_data(client.address),
        min_liquidity,
        ZERO_ADDRESS,
        b"",
    )
    deposit_receipt = client.transact_and_wait(deposit_call)
    deposit_tx_hash = deposit_receipt["transactionHash"]
    logger.info("Successfully added liquidity, tx hash: %s", deposit_tx_hash.hex())

    sleep_func(config.deposit_settle_delay.total_seconds())

    liquidity = get_balance_and_approve(
        client,
        pool.address,
        config.router_address,
        allowance_reset_symbols=config.allowance_reset_symbols,
        settle_delay=config.approval_settle_delay,
        sleep_func=sleep_func,
    )

    min_amounts = calculate_min_amounts(balances, config.slippage_bps)

    burn_call = router.functions.burnLiquidity(
        pool.address,
        liquidity,
        encode_withdraw_data(client.address, config.withdraw_mode),
        min_amounts,
        ZERO_ADDRESS,
        b"",
    )
    burn_receipt = client.transact_and_wait(burn_call, gas_buffer_bps=config.withdraw_gas_buffer_bps)
    withdraw_tx_hash = burn_receipt["transactionHash"]
    logger.info("Successfully removed liquidity, tx hash: %s", withdraw_tx_hash.hex())

    return LiquidityCycleResult(
        pool_address=pool.address,
        token0=pool.token0,
        token1=pool.token1,
        deposited_amounts=(balances[0], balances[1]),
        min_liquidity=min_liquidity,
        liquidity=liquidity,
        min_withdraw_amounts=(min_amounts[0], min_amounts[1]),
        deposit_tx_hash=deposit_tx_hash,
        withdraw_tx_hash=withdraw_tx_hash,
    )
