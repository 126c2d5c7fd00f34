"""Liquidity cycle configuration.

Contract addresses and the cycle policy are passed around
as an explicit :py:class:`LiquidityCycleConfig` instance.

Example:

.. code-block:: python

    from eth_lp_cycle.config import LiquidityCycleConfig, create_config_from_env, read_private_key

    private_key = read_private_key()
    config = create_config_from_env()
"""

import datetime
import os
import re
from dataclasses import dataclass

from eth_typing import HexAddress
from web3 import Web3

from eth_lp_cycle.constants import (
    DEFAULT_ALLOWANCE_RESET_SYMBOLS,
    DEFAULT_APPROVAL_SETTLE_DELAY,
    DEFAULT_CONFIRMATION_TIMEOUT,
    DEFAULT_CONFIRMATIONS,
    DEFAULT_DEPOSIT_SETTLE_DELAY,
    DEFAULT_POLL_DELAY,
    DEFAULT_SLIPPAGE_BPS,
    DEFAULT_WITHDRAW_GAS_BUFFER_BPS,
    DEFAULT_WITHDRAW_MODE,
    SYNCSWAP_DEPLOYMENTS,
    BPS,
)
from eth_lp_cycle.exceptions import ConfigurationError

_PRIVATE_KEY_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")


@dataclass(slots=True)
class LiquidityCycleConfig:
    """Configuration for one add-and-remove liquidity cycle.

    :param factory_address: Classic pool factory used to resolve the pool
    :param router_address: Router receiving deposits and burns. Also the approval spender.
    :param slippage_bps: Haircut applied to the estimated LP mint and to the withdrawal amounts
    :param withdraw_gas_buffer_bps: Extra gas on top of the burnLiquidity() estimate
    :param approval_settle_delay: Pause after every approval transaction
    :param deposit_settle_delay: Pause after the deposit before reading the LP balance
    :param allowance_reset_symbols: Token symbols whose allowance must be zeroed before changing it
    :param withdraw_mode: Withdraw mode word in the burnLiquidity() data payload
    :param confirmations: Blocks to wait for, the mining block included
    :param confirmation_timeout: Give up waiting for a receipt after this
    :param poll_delay: Receipt poll interval
    """

    factory_address: HexAddress = SYNCSWAP_DEPLOYMENTS["zksync"]["factory"]
    router_address: HexAddress = SYNCSWAP_DEPLOYMENTS["zksync"]["router"]
    slippage_bps: int = DEFAULT_SLIPPAGE_BPS
    withdraw_gas_buffer_bps: int = DEFAULT_WITHDRAW_GAS_BUFFER_BPS
    approval_settle_delay: datetime.timedelta = DEFAULT_APPROVAL_SETTLE_DELAY
    deposit_settle_delay: datetime.timedelta = DEFAULT_DEPOSIT_SETTLE_DELAY
    allowance_reset_symbols: frozenset[str] = DEFAULT_ALLOWANCE_RESET_SYMBOLS
    withdraw_mode: int = DEFAULT_WITHDRAW_MODE
    confirmations: int = DEFAULT_CONFIRMATIONS
    confirmation_timeout: datetime.timedelta = DEFAULT_CONFIRMATION_TIMEOUT
    poll_delay: datetime.timedelta = DEFAULT_POLL_DELAY

    def __post_init__(self):
        self.factory_address = Web3.to_checksum_address(self.factory_address)
        self.router_address = Web3.to_checksum_address(self.router_address)
        self.allowance_reset_symbols = frozenset(self.allowance_reset_symbols)
        assert 0 <= self.slippage_bps < BPS, f"Bad slippage {self.slippage_bps} BPS"
        assert self.withdraw_gas_buffer_bps >= 0, f"Bad gas buffer {self.withdraw_gas_buffer_bps} BPS"
        assert self.confirmations >= 1, "A transaction needs at least one confirmation"
        assert isinstance(self.approval_settle_delay, datetime.timedelta)
        assert isinstance(self.deposit_settle_delay, datetime.timedelta)


def read_private_key(env_var: str = "KEY") -> str:
    """Read the signing credential from an environment variable.

    :raise ConfigurationError:
        If the variable is not set or does not look like a private key.
    """
    private_key = os.environ.get(env_var)
    if not private_key:
        raise ConfigurationError(f"Private key is not set, set {env_var} environment variable")

    if not _PRIVATE_KEY_PATTERN.match(private_key):
        raise ConfigurationError(f"{env_var} must be a 0x prefixed 32 bytes hex private key")

    return private_key


def create_config_from_env() -> LiquidityCycleConfig:
    """Create LiquidityCycleConfig from environment variables.

    Environment variables:
    - LP_CYCLE_FACTORY: Pool factory address (default: zkSync SyncSwap)
    - LP_CYCLE_ROUTER: Router address (default: zkSync SyncSwap)
    - LP_CYCLE_SLIPPAGE_BPS: Slippage tolerance (default: 500)
    - LP_CYCLE_WITHDRAW_GAS_BUFFER_BPS: Gas limit buffer for the withdrawal (default: 1000)
    - LP_CYCLE_APPROVAL_SETTLE_SECONDS: Pause after approvals (default: 3)
    - LP_CYCLE_DEPOSIT_SETTLE_SECONDS: Pause after the deposit (default: 5)
    - LP_CYCLE_WITHDRAW_MODE: burnLiquidity() withdraw mode (default: 1)

    :return: Configured LiquidityCycleConfig instance
    """

    def get_int(key: str, default: int) -> int:
        value = os.environ.get(key)
        if not value:
            return default
        try:
            return int(value)
        except ValueError as e:
            raise ConfigurationError(f"{key} must be an integer, got {value}") from e

    def get_seconds(key: str, default: datetime.timedelta) -> datetime.timedelta:
        value = os.environ.get(key)
        if not value:
            return default
        try:
            return datetime.timedelta(seconds=float(value))
        except ValueError as e:
            raise ConfigurationError(f"{key} must be seconds, got {value}") from e

    zksync = SYNCSWAP_DEPLOYMENTS["zksync"]

    return LiquidityCycleConfig(
        factory_address=os.environ.get("LP_CYCLE_FACTORY") or zksync["factory"],
        router_address=os.environ.get("LP_CYCLE_ROUTER") or zksync["router"],
        slippage_bps=get_int("LP_CYCLE_SLIPPAGE_BPS", DEFAULT_SLIPPAGE_BPS),
        withdraw_gas_buffer_bps=get_int("LP_CYCLE_WITHDRAW_GAS_BUFFER_BPS", DEFAULT_WITHDRAW_GAS_BUFFER_BPS),
        approval_settle_delay=get_seconds("LP_CYCLE_APPROVAL_SETTLE_SECONDS", DEFAULT_APPROVAL_SETTLE_DELAY),
        deposit_settle_delay=get_seconds("LP_CYCLE_DEPOSIT_SETTLE_SECONDS", DEFAULT_DEPOSIT_SETTLE_DELAY),
        withdraw_mode=get_int("LP_CYCLE_WITHDRAW_MODE", DEFAULT_WITHDRAW_MODE),
    )
