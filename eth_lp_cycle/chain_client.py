"""Chain client capability.

All on-chain reads and writes of the liquidity cycle go through a :py:class:`ChainClient`.

- Calls are passed as bound web3.py :py:class:`ContractFunction` instances,
  carrying the contract address, the function and its arguments

- :py:class:`Web3ChainClient` talks to a real JSON-RPC node and signs with a :py:class:`HotWallet`

- :py:class:`eth_lp_cycle.testing.SimulatedChainClient` is an in-memory ledger for tests
"""

import datetime
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Optional, Union

import requests
from eth_typing import HexAddress
from hexbytes import HexBytes
from web3 import Web3
from web3.contract.contract import ContractFunction
from web3.exceptions import ContractLogicError, Web3RPCError
from web3.types import TxReceipt

from eth_lp_cycle.confirmation import wait_transaction_to_complete
from eth_lp_cycle.constants import DEFAULT_CONFIRMATION_TIMEOUT, DEFAULT_CONFIRMATIONS, DEFAULT_POLL_DELAY
from eth_lp_cycle.exceptions import EstimationError, RemoteUnavailableError, TransactionRejectedError, TransactionRevertedError
from eth_lp_cycle.gas import add_gas_buffer, estimate_gas_limit, fetch_gas_price
from eth_lp_cycle.hotwallet import HotWallet
from eth_lp_cycle.revert_reason import fetch_transaction_revert_reason

logger = logging.getLogger(__name__)

#: Transport level failures of the HTTP JSON-RPC provider
_NETWORK_ERRORS = (
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
    requests.exceptions.HTTPError,
    requests.exceptions.ChunkedEncodingError,
    requests.exceptions.ContentDecodingError,
)


class ChainClient(ABC):
    """Read, estimate, submit and confirm contract calls for one signer.

    Subclasses implement the primitives. :py:meth:`wait_for_finality`
    and :py:meth:`transact_and_wait` are shared.
    """

    def __init__(self):
        #: Transactions confirmed successfully through this client, in order
        self.confirmed_tx_hashes: list[HexBytes] = []

    @property
    @abstractmethod
    def web3(self) -> Web3:
        """Web3 instance used to create contract proxies and encode calls."""

    @property
    @abstractmethod
    def address(self) -> HexAddress:
        """The signer address."""

    @abstractmethod
    def read(self, call: ContractFunction) -> Any:
        """Do a side-effect free ``eth_call``."""

    @abstractmethod
    def estimate_gas(self, call: ContractFunction) -> int:
        """Estimate the gas limit of a call sent by the signer.

        :raise EstimationError:
            The call would revert.
        """

    @abstractmethod
    def fetch_gas_price(self) -> int:
        """Current network gas price in wei."""

    @abstractmethod
    def submit(self, call: ContractFunction, gas_limit: int, gas_price: int) -> HexBytes:
        """Sign and broadcast a call.

        :return:
            Transaction hash
        """

    @abstractmethod
    def fetch_receipt(self, tx_hash: HexBytes) -> TxReceipt:
        """Block until the transaction is mined with enough confirmations."""

    def fetch_revert_reason(self, tx_hash: HexBytes) -> Optional[str]:
        """Explain why a mined transaction failed, if we can."""
        return None

    def wait_for_finality(self, tx_hash: Union[HexBytes, str]) -> TxReceipt:
        """Wait for the transaction to be confirmed and check it succeeded.

        :raise TransactionRevertedError:
            The transaction was mined with a failure status.
        """
        tx_hash = HexBytes(tx_hash)
        receipt = self.fetch_receipt(tx_hash)
        if receipt["status"] != 1:
            revert_reason = self.fetch_revert_reason(tx_hash)
            raise TransactionRevertedError(
                f"Transaction {tx_hash.hex()} reverted: {revert_reason}",
                tx_hash=tx_hash,
                revert_reason=revert_reason,
            )
        self.confirmed_tx_hashes.append(tx_hash)
        return receipt

    def transact_and_wait(
        self,
        call: ContractFunction,
        gas_buffer_bps: int = 0,
    ) -> TxReceipt:
        """Estimate gas, submit a call with the current gas price and wait for it to complete.

        :param gas_buffer_bps:
            Extra gas added on the top of the estimate
        """
        gas_price = self.fetch_gas_price()
        raw_gas_limit = self.estimate_gas(call)
        gas_limit = add_gas_buffer(raw_gas_limit, gas_buffer_bps)
        logger.debug("Submitting %s() with gas limit %d (estimated %d), gas price %d", call.fn_name, gas_limit, raw_gas_limit, gas_price)
        tx_hash = self.submit(call, gas_limit, gas_price)
        return self.wait_for_finality(tx_hash)


@contextmanager
def _remote_call(what: str):
    """Translate JSON-RPC transport failures to :py:class:`RemoteUnavailableError`."""
    try:
        yield
    except _NETWORK_ERRORS as e:
        raise RemoteUnavailableError(f"JSON-RPC node unavailable during {what}: {e}") from e


class Web3ChainClient(ChainClient):
    """Chain client over a web3.py connection, signing with a hot wallet.

    Example:

    .. code-block:: python

        web3 = Web3(HTTPProvider(json_rpc_url))
        hot_wallet = HotWallet.from_private_key(read_private_key())
        client = Web3ChainClient(web3, hot_wallet)

        balance = client.read(token.functions.balanceOf(client.address))
    """

    def __init__(
        self,
        web3: Web3,
        hot_wallet: HotWallet,
        confirmations: int = DEFAULT_CONFIRMATIONS,
        confirmation_timeout: datetime.timedelta = DEFAULT_CONFIRMATION_TIMEOUT,
        poll_delay: datetime.timedelta = DEFAULT_POLL_DELAY,
    ):
        super().__init__()
        self._web3 = web3
        self.hot_wallet = hot_wallet
        self.confirmations = confirmations
        self.confirmation_timeout = confirmation_timeout
        self.poll_delay = poll_delay

        with _remote_call("connecting"):
            self.chain_id = web3.eth.chain_id
            if hot_wallet.current_nonce is None:
                hot_wallet.sync_nonce(web3)

        logger.info("Chain client for %s on chain %d", hot_wallet.address, self.chain_id)

    def __repr__(self):
        return f"<Web3ChainClient {self.address} chain:{self.chain_id}>"

    @property
    def web3(self) -> Web3:
        return self._web3

    @property
    def address(self) -> HexAddress:
        return self.hot_wallet.address

    def read(self, call: ContractFunction) -> Any:
        with _remote_call(f"{call.fn_name}() read"):
            return call.call()

    def estimate_gas(self, call: ContractFunction) -> int:
        try:
            with _remote_call(f"{call.fn_name}() gas estimation"):
                return estimate_gas_limit(call, self.address)
        except (ContractLogicError, Web3RPCError, ValueError) as e:
            raise EstimationError(f"Gas estimation failed for {call.fn_name}() at {call.address}: {e}") from e

    def fetch_gas_price(self) -> int:
        with _remote_call("gas price"):
            return fetch_gas_price(self.web3)

    def submit(self, call: ContractFunction, gas_limit: int, gas_price: int) -> HexBytes:
        signed_tx = self.hot_wallet.sign_bound_call_with_new_nonce(call, gas_limit, gas_price, chain_id=self.chain_id)
        try:
            with _remote_call(f"{call.fn_name}() broadcast"):
                tx_hash = self.web3.eth.send_raw_transaction(signed_tx.raw_transaction)
        except Web3RPCError as e:
            raise TransactionRejectedError(f"Node rejected {call.fn_name}() transaction {signed_tx}: {e}") from e
        logger.info("Broadcasted %s() tx %s, nonce %d", call.fn_name, HexBytes(tx_hash).hex(), signed_tx.nonce)
        return HexBytes(tx_hash)

    def fetch_receipt(self, tx_hash: HexBytes) -> TxReceipt:
        with _remote_call(f"waiting {tx_hash.hex()}"):
            return wait_transaction_to_complete(
                self.web3,
                tx_hash,
                confirmations=self.confirmations,
                max_timeout=self.confirmation_timeout,
                poll_delay=self.poll_delay,
            )

    def fetch_revert_reason(self, tx_hash: HexBytes) -> Optional[str]:
        try:
            with _remote_call(f"revert reason of {tx_hash.hex()}"):
                return fetch_transaction_revert_reason(self.web3, tx_hash)
        except RemoteUnavailableError as e:
            logger.warning("Could not fetch revert reason for %s: %s", tx_hash.hex(), e)
            return None
