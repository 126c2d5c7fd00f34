"""Configuration from environment variables."""

import datetime

import pytest
from web3 import Web3

from eth_lp_cycle.config import LiquidityCycleConfig, create_config_from_env, read_private_key
from eth_lp_cycle.constants import SYNCSWAP_DEPLOYMENTS
from eth_lp_cycle.exceptions import ConfigurationError

_ENV_VARS = [
    "LP_CYCLE_FACTORY",
    "LP_CYCLE_ROUTER",
    "LP_CYCLE_SLIPPAGE_BPS",
    "LP_CYCLE_WITHDRAW_GAS_BUFFER_BPS",
    "LP_CYCLE_APPROVAL_SETTLE_SECONDS",
    "LP_CYCLE_DEPOSIT_SETTLE_SECONDS",
    "LP_CYCLE_WITHDRAW_MODE",
]


@pytest.fixture()
def clean_env(monkeypatch):
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


def test_read_private_key(monkeypatch):
    key = "0x" + "1f" * 32
    monkeypatch.setenv("KEY", key)
    assert read_private_key() == key


def test_read_private_key_missing(monkeypatch):
    """Missing credential is caught before anything touches the chain."""
    monkeypatch.delenv("KEY", raising=False)
    with pytest.raises(ConfigurationError):
        read_private_key()


@pytest.mark.parametrize("value", ["", "1f" * 32, "0x1234", "0x" + "zz" * 32])
def test_read_private_key_malformed(monkeypatch, value):
    monkeypatch.setenv("MY_KEY", value)
    with pytest.raises(ConfigurationError):
        read_private_key("MY_KEY")


def test_default_config(clean_env):
    """zkSync Era deployment with 5% slippage and 10% withdrawal gas buffer."""
    config = create_config_from_env()
    assert config.factory_address == Web3.to_checksum_address(SYNCSWAP_DEPLOYMENTS["zksync"]["factory"])
    assert config.router_address == Web3.to_checksum_address(SYNCSWAP_DEPLOYMENTS["zksync"]["router"])
    assert config.slippage_bps == 500
    assert config.withdraw_gas_buffer_bps == 1000
    assert config.approval_settle_delay == datetime.timedelta(seconds=3)
    assert config.deposit_settle_delay == datetime.timedelta(seconds=5)
    assert config.allowance_reset_symbols == frozenset({"USDT"})
    assert config.withdraw_mode == 1
    assert config.confirmations == 1


def test_config_from_env(clean_env):
    router = "0x" + "ab" * 20
    clean_env.setenv("LP_CYCLE_ROUTER", router)
    clean_env.setenv("LP_CYCLE_SLIPPAGE_BPS", "100")
    clean_env.setenv("LP_CYCLE_WITHDRAW_GAS_BUFFER_BPS", "2000")
    clean_env.setenv("LP_CYCLE_APPROVAL_SETTLE_SECONDS", "0.5")
    clean_env.setenv("LP_CYCLE_DEPOSIT_SETTLE_SECONDS", "0")
    clean_env.setenv("LP_CYCLE_WITHDRAW_MODE", "2")

    config = create_config_from_env()
    assert config.router_address == Web3.to_checksum_address(router)
    assert config.slippage_bps == 100
    assert config.withdraw_gas_buffer_bps == 2000
    assert config.approval_settle_delay == datetime.timedelta(seconds=0.5)
    assert config.deposit_settle_delay == datetime.timedelta(0)
    assert config.withdraw_mode == 2


@pytest.mark.parametrize(
    "var,value",
    [
        ("LP_CYCLE_SLIPPAGE_BPS", "5%"),
        ("LP_CYCLE_WITHDRAW_MODE", "one"),
        ("LP_CYCLE_DEPOSIT_SETTLE_SECONDS", "soon"),
    ],
)
def test_config_from_env_bad_value(clean_env, var, value):
    clean_env.setenv(var, value)
    with pytest.raises(ConfigurationError):
        create_config_from_env()


def test_config_normalises():
    config = LiquidityCycleConfig(
        factory_address="0x" + "cd" * 20,
        allowance_reset_symbols=["USDT", "XYZ"],
    )
    assert config.factory_address == Web3.to_checksum_address("0x" + "cd" * 20)
    assert config.allowance_reset_symbols == frozenset({"USDT", "XYZ"})


@pytest.mark.parametrize("slippage_bps", [-1, 10_000])
def test_config_bad_slippage(slippage_bps):
    with pytest.raises(AssertionError):
        LiquidityCycleConfig(slippage_bps=slippage_bps)
