"""In-memory chain for testing the liquidity cycle.

:py:class:`SimulatedChainClient` implements :py:class:`eth_lp_cycle.chain_client.ChainClient`
against a tiny ledger of ERC-20 tokens, classic pools, a pool factory and a router.
Calls are the same bound web3.py contract functions the real client gets,
so ABI encoding of the arguments is exercised as well.

Example:

.. code-block:: python

    client = SimulatedChainClient()
    usdc = client.create_token("USDC")
    weth = client.create_token("WETH")
    pool = client.create_pool(usdc, weth, reserve0=1000 * 10**18, reserve1=2000 * 10**18, total_supply=1000 * 10**18)
    client.mint(usdc, client.address, 100 * 10**18)

    result = add_and_remove_liquidity(client, client.create_config(), usdc, weth, sleep_func=client.sleep)
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Optional

from eth_abi import decode
from eth_account import Account
from eth_typing import HexAddress
from eth_utils import keccak
from hexbytes import HexBytes
from web3 import Web3
from web3.contract.contract import ContractFunction
from web3.datastructures import AttributeDict
from web3.types import TxReceipt

from eth_lp_cycle.abi import ZERO_ADDRESS
from eth_lp_cycle.chain_client import ChainClient
from eth_lp_cycle.config import LiquidityCycleConfig
from eth_lp_cycle.exceptions import EstimationError

logger = logging.getLogger(__name__)

#: Gas we pretend each function takes
DEFAULT_GAS_ESTIMATES = {
    "approve": 46_000,
    "addLiquidity2": 320_000,
    "burnLiquidity": 260_000,
}


class SimulatedRevert(Exception):
    """A simulated contract call reverted."""


@dataclass(slots=True)
class SimulatedToken:
    """ERC-20 token state."""

    address: HexAddress
    symbol: str

    #: Revert when changing a non-zero allowance to non-zero, like USDT
    requires_allowance_reset: bool = False
    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[tuple[str, str], int] = field(default_factory=dict)

    def balance_of(self, owner: str) -> int:
        return self.balances.get(owner, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get((owner, spender), 0)

    def spend(self, owner: str, spender: str, amount: int):
        if self.balance_of(owner) < amount:
            raise SimulatedRevert(f"{self.symbol}: transfer amount exceeds balance")
        if self.allowance(owner, spender) < amount:
            raise SimulatedRevert(f"{self.symbol}: insufficient allowance")
        self.allowances[(owner, spender)] -= amount
        self.balances[owner] -= amount


@dataclass(slots=True)
class SimulatedPool:
    """Classic pool state. The LP token lives in :py:attr:`SimulatedChainClient.tokens`."""

    address: HexAddress
    token0: HexAddress
    token1: HexAddress
    reserve0: int
    reserve1: int
    total_supply: int


@dataclass(slots=True)
class SimulatedTransaction:
    """A submitted transaction."""

    tx_hash: HexBytes
    to: HexAddress
    fn_name: str
    args: tuple
    gas_limit: int
    gas_price: int
    status: int
    revert_reason: Optional[str] = None


class SimulatedChainClient(ChainClient):
    """Chain client over an in-memory ledger.

    - Reads, gas estimates and transactions are dispatched by the called contract address and function name

    - Gas estimation dry-runs the call and raises :py:class:`EstimationError` if it would revert

    - Transactions are mined immediately; a reverting transaction gets status 0 and changes nothing

    - :py:attr:`timeline` records submitted transactions and :py:meth:`sleep` calls in order
    """

    def __init__(
        self,
        address: Optional[HexAddress] = None,
        gas_price: int = 25_000_000,
    ):
        super().__init__()
        # Disconnected, only used to build contract calls
        self._web3 = Web3()
        self._address = Web3.to_checksum_address(address or Account.create().address)
        self.gas_price = gas_price
        self.gas_estimates = dict(DEFAULT_GAS_ESTIMATES)

        self._address_counter = 0
        self.factory_address = self._new_address()
        self.router_address = self._new_address()

        self.tokens: dict[str, SimulatedToken] = {}
        self.pools: dict[str, SimulatedPool] = {}
        self.pairs: dict[frozenset, str] = {}

        self.transactions: list[SimulatedTransaction] = []
        self.receipts: dict[HexBytes, TxReceipt] = {}
        self.timeline: list[tuple] = []

        #: Function names that get mined with status 0 even if they would succeed
        self.reverting_functions: set[str] = set()

        #: Function names whose gas estimation fails
        self.failing_estimates: set[str] = set()

        self.block_number = 1

    def __repr__(self):
        return f"<SimulatedChainClient {self.address}, {len(self.transactions)} txs>"

    @property
    def web3(self) -> Web3:
        return self._web3

    @property
    def address(self) -> HexAddress:
        return self._address

    def _new_address(self) -> HexAddress:
        self._address_counter += 1
        return Web3.to_checksum_address(keccak(text=f"simulated-{self._address_counter}")[-20:])

    def create_config(self, **kwargs) -> LiquidityCycleConfig:
        """Config pointing to the simulated factory and router."""
        return LiquidityCycleConfig(
            factory_address=self.factory_address,
            router_address=self.router_address,
            **kwargs,
        )

    def create_token(self, symbol: str, requires_allowance_reset: bool = False) -> HexAddress:
        """Deploy a token, return its address."""
        address = self._new_address()
        self.tokens[address] = SimulatedToken(address, symbol, requires_allowance_reset=requires_allowance_reset)
        return address

    def create_pool(
        self,
        token_a: HexAddress,
        token_b: HexAddress,
        reserve0: int,
        reserve1: int,
        total_supply: int,
        token0: Optional[HexAddress] = None,
    ) -> HexAddress:
        """Deploy a pool with reserves already in it.

        :param token0:
            Which token the pool sees as the first one.
            By default sorted by address like the real pools.
        """
        if token0 is None:
            token0 = min(token_a, token_b, key=lambda a: int(a, 16))
        token1 = token_b if token0 == token_a else token_a
        address = self._new_address()
        self.pools[address] = SimulatedPool(address, token0, token1, reserve0, reserve1, total_supply)
        self.tokens[address] = SimulatedToken(address, "cSLP")
        self.pairs[frozenset((token_a, token_b))] = address
        return address

    def mint(self, token: HexAddress, owner: HexAddress, amount: int):
        """Give tokens to someone."""
        balances = self.tokens[token].balances
        balances[owner] = balances.get(owner, 0) + amount

    def set_allowance(self, token: HexAddress, owner: HexAddress, spender: HexAddress, amount: int):
        self.tokens[token].allowances[(owner, spender)] = amount

    def balance_of(self, token: HexAddress, owner: Optional[HexAddress] = None) -> int:
        return self.tokens[token].balance_of(owner or self.address)

    def allowance(self, token: HexAddress, spender: HexAddress, owner: Optional[HexAddress] = None) -> int:
        return self.tokens[token].allowance(owner or self.address, spender)

    def sleep(self, seconds: float):
        """Wait strategy recording the pause instead of sleeping."""
        self.timeline.append(("sleep", seconds))

    def get_transactions(self, fn_name: Optional[str] = None) -> list[SimulatedTransaction]:
        """Submitted transactions, optionally filtered by the function name."""
        return [tx for tx in self.transactions if fn_name is None or tx.fn_name == fn_name]

    def read(self, call: ContractFunction) -> Any:
        address = Web3.to_checksum_address(call.address)
        name = call.fn_name
        args = call.args

        if address == self.factory_address and name == "getPool":
            token_a, token_b = (Web3.to_checksum_address(a) for a in args)
            return self.pairs.get(frozenset((token_a, token_b)), ZERO_ADDRESS)

        if address in self.pools:
            pool = self.pools[address]
            if name == "getReserves":
                return [pool.reserve0, pool.reserve1]
            elif name == "token0":
                return pool.token0
            elif name == "totalSupply":
                return pool.total_supply

        if address in self.tokens:
            token = self.tokens[address]
            if name == "balanceOf":
                return token.balance_of(args[0])
            elif name == "allowance":
                return token.allowance(args[0], args[1])
            elif name == "symbol":
                return token.symbol

        raise NotImplementedError(f"Simulated chain cannot read {name}() at {address}")

    def estimate_gas(self, call: ContractFunction) -> int:
        if call.fn_name in self.failing_estimates:
            raise EstimationError(f"Gas estimation failed for {call.fn_name}()")
        try:
            self._execute(call, dry_run=True)
        except SimulatedRevert as e:
            raise EstimationError(f"Gas estimation failed for {call.fn_name}(): {e}") from e
        return self.gas_estimates[call.fn_name]

    def fetch_gas_price(self) -> int:
        return self.gas_price

    def submit(self, call: ContractFunction, gas_limit: int, gas_price: int) -> HexBytes:
        tx_hash = HexBytes(keccak(text=f"{self.address}-{len(self.transactions)}"))
        revert_reason = None

        if call.fn_name in self.reverting_functions:
            revert_reason = f"{call.fn_name}() forced to revert"
        else:
            try:
                self._execute(call, dry_run=False)
            except SimulatedRevert as e:
                revert_reason = str(e)

        status = 0 if revert_reason else 1
        tx = SimulatedTransaction(
            tx_hash=tx_hash,
            to=Web3.to_checksum_address(call.address),
            fn_name=call.fn_name,
            args=tuple(call.args),
            gas_limit=gas_limit,
            gas_price=gas_price,
            status=status,
            revert_reason=revert_reason,
        )
        self.transactions.append(tx)
        self.timeline.append(("tx", call.fn_name, tuple(call.args)))

        self.block_number += 1
        self.receipts[tx_hash] = AttributeDict(
            {
                "transactionHash": tx_hash,
                "blockNumber": self.block_number,
                "status": status,
                "gasUsed": self.gas_estimates[call.fn_name],
            }
        )
        return tx_hash

    def fetch_receipt(self, tx_hash: HexBytes) -> TxReceipt:
        return self.receipts[HexBytes(tx_hash)]

    def fetch_revert_reason(self, tx_hash: HexBytes) -> Optional[str]:
        for tx in self.transactions:
            if tx.tx_hash == tx_hash:
                return tx.revert_reason
        return None

    def _execute(self, call: ContractFunction, dry_run: bool):
        address = Web3.to_checksum_address(call.address)
        name = call.fn_name

        if address in self.tokens and name == "approve":
            self._approve(self.tokens[address], *call.args, dry_run=dry_run)
        elif address == self.router_address and name == "addLiquidity2":
            self._add_liquidity(*call.args, dry_run=dry_run)
        elif address == self.router_address and name == "burnLiquidity":
            self._burn_liquidity(*call.args, dry_run=dry_run)
        else:
            raise NotImplementedError(f"Simulated chain cannot execute {name}() at {address}")

    def _approve(self, token: SimulatedToken, spender: str, amount: int, dry_run: bool):
        current = token.allowance(self.address, spender)
        if token.requires_allowance_reset and current != 0 and amount != 0:
            raise SimulatedRevert(f"{token.symbol}: approve from non-zero to non-zero allowance")
        if not dry_run:
            token.allowances[(self.address, spender)] = amount

    def _add_liquidity(self, pool_address: str, inputs: list, data: bytes, min_liquidity: int, callback: str, callback_data: bytes, dry_run: bool):
        pool = self.pools[Web3.to_checksum_address(pool_address)]
        (recipient,) = decode(["address"], data)
        recipient = Web3.to_checksum_address(recipient)

        amounts = {pool.token0: 0, pool.token1: 0}
        for token, amount in inputs:
            token = Web3.to_checksum_address(token)
            if token not in amounts:
                raise SimulatedRevert(f"Token {token} not in pool")
            amounts[token] += amount

        for token, amount in amounts.items():
            spendable = min(self.tokens[token].balance_of(self.address), self.tokens[token].allowance(self.address, self.router_address))
            if spendable < amount:
                raise SimulatedRevert(f"Cannot pull {amount} of {self.tokens[token].symbol}, only {spendable} available")

        # Classic pool mints against the growth of sqrt(x * y) invariant
        new_reserve0 = pool.reserve0 + amounts[pool.token0]
        new_reserve1 = pool.reserve1 + amounts[pool.token1]
        old_invariant = math.isqrt(pool.reserve0 * pool.reserve1)
        new_invariant = math.isqrt(new_reserve0 * new_reserve1)
        liquidity = (new_invariant - old_invariant) * pool.total_supply // old_invariant

        if liquidity == 0:
            raise SimulatedRevert("Insufficient liquidity minted")

        if liquidity < min_liquidity:
            raise SimulatedRevert(f"Slippage: minted {liquidity}, wanted {min_liquidity}")

        if dry_run:
            return

        for token, amount in amounts.items():
            self.tokens[token].spend(self.address, self.router_address, amount)

        pool.reserve0 = new_reserve0
        pool.reserve1 = new_reserve1
        pool.total_supply += liquidity
        self.mint(pool.address, recipient, liquidity)

    def _burn_liquidity(self, pool_address: str, liquidity: int, data: bytes, min_amounts: list, callback: str, callback_data: bytes, dry_run: bool):
        pool = self.pools[Web3.to_checksum_address(pool_address)]
        lp_token = self.tokens[pool.address]
        recipient, withdraw_mode = decode(["address", "uint8"], data)
        recipient = Web3.to_checksum_address(recipient)

        if liquidity == 0:
            raise SimulatedRevert("Insufficient liquidity burned")

        if lp_token.balance_of(self.address) < liquidity or lp_token.allowance(self.address, self.router_address) < liquidity:
            raise SimulatedRevert("Cannot pull LP tokens")

        amount0 = liquidity * pool.reserve0 // pool.total_supply
        amount1 = liquidity * pool.reserve1 // pool.total_supply

        if amount0 < min_amounts[0] or amount1 < min_amounts[1]:
            raise SimulatedRevert(f"Slippage: got {amount0}, {amount1}, wanted {min_amounts[0]}, {min_amounts[1]}")

        if dry_run:
            return

        lp_token.spend(self.address, self.router_address, liquidity)
        pool.total_supply -= liquidity
        pool.reserve0 -= amount0
        pool.reserve1 -= amount1
        self.mint(pool.token0, recipient, amount0)
        self.mint(pool.token1, recipient, amount1)
