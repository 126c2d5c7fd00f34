"""Hot wallet signing the liquidity cycle transactions.

- Create a local wallet from a private key

- Sign bound contract calls with a manually managed nonce
"""

import logging
from typing import NamedTuple, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_typing import HexAddress
from hexbytes import HexBytes
from web3 import Web3
from web3.contract.contract import ContractFunction

from eth_lp_cycle.gas import apply_gas

logger = logging.getLogger(__name__)


class SignedTransactionWithNonce(NamedTuple):
    """A signed transaction with the nonce and source data we used.

    If broadcast fails, retain the source so we can debug the cause,
    like the original gas parameters.
    """

    #: Bytes to broadcast with ``eth_sendRawTransaction``
    raw_transaction: HexBytes

    #: Transaction hash
    hash: HexBytes

    #: What was the source nonce for this transaction
    nonce: int

    #: Whas was the source address for this trasaction
    address: str

    #: Unencoded transaction data as a dict.
    source: Optional[dict] = None

    def __repr__(self):
        return f"<SignedTransactionWithNonce hash:{self.hash.hex()} nonce:{self.nonce}>"


class HotWallet:
    """Hot wallet for signing transactions.

    - A hot wallet maintains an plain text private key of an Ethereum address in the process memory
      using :py:class:`eth_account.signers.local.LocalAccount` and nonce counter.

    - Call :py:meth:`sync_nonce` once before signing anything.

    Example:

    .. code-block:: python

        hot_wallet = HotWallet.from_private_key(read_private_key())
        hot_wallet.sync_nonce(web3)
        signed_tx = hot_wallet.sign_bound_call_with_new_nonce(
            token.functions.approve(router, amount),
            gas_limit=60_000,
            gas_price=web3.eth.gas_price,
        )
        web3.eth.send_raw_transaction(signed_tx.raw_transaction)

    .. note ::

        This class is not thread safe.
    """

    def __init__(self, account: LocalAccount):
        """Create a hot wallet from a local account."""
        self.account = account
        self.current_nonce: Optional[int] = None

    def __repr__(self):
        return f"<Hot wallet {self.account.address}>"

    @property
    def address(self) -> HexAddress:
        """Ethereum address of the wallet."""
        return self.account.address

    def sync_nonce(self, web3: Web3):
        """Initialise the current nonce from the on-chain data."""
        self.current_nonce = web3.eth.get_transaction_count(self.account.address)
        logger.info("Synced nonce for %s to %d", self.account.address, self.current_nonce)

    def allocate_nonce(self) -> int:
        """Get the next free available nonce to be used with a transaction.

        Increase the nonce counter.
        """
        assert self.current_nonce is not None, f"Nonce is not yet synced from the blockchain: {self}"
        nonce = self.current_nonce
        self.current_nonce += 1
        return nonce

    def sign_transaction_with_new_nonce(self, tx: dict) -> SignedTransactionWithNonce:
        """Signs a transaction and allocates a nonce for it.

        :param tx:
            Ethereum transaction data as a dict.
            This is modified in-place to include nonce.
        """
        assert type(tx) == dict
        assert "nonce" not in tx
        tx["nonce"] = self.allocate_nonce()
        _signed = self.account.sign_transaction(tx)
        return SignedTransactionWithNonce(
            raw_transaction=HexBytes(_signed.raw_transaction),
            hash=HexBytes(_signed.hash),
            nonce=tx["nonce"],
            address=self.address,
            source=tx,
        )

    def sign_bound_call_with_new_nonce(
        self,
        func: ContractFunction,
        gas_limit: int,
        gas_price: int,
        chain_id: Optional[int] = None,
    ) -> SignedTransactionWithNonce:
        """Signs a bound Web3 Contract call with explicit gas parameters.

        Because gas limit and price are given, building the transaction
        does not do any JSON-RPC calls besides the chain id lookup.

        :param func:
            Web3 contract function that has its arguments bound

        :param chain_id:
            Read from the connected node if not given
        """
        assert isinstance(func, ContractFunction), f"Got: {type(func)}"
        assert func.args is not None, f"Unbound contract function? {func}"

        if chain_id is None:
            chain_id = func.w3.eth.chain_id

        tx_params = apply_gas({"from": self.address, "chainId": chain_id}, gas_limit, gas_price)
        tx = func.build_transaction(tx_params)
        return self.sign_transaction_with_new_nonce(tx)

    @staticmethod
    def from_private_key(key: str) -> "HotWallet":
        """Create a hot wallet from a private key that is passed in as a hex string.

        Example:

        .. code-block:: python

            wallet = HotWallet.from_private_key(os.environ["KEY"])
        """
        assert key.startswith("0x"), "Private key must be 0x prefixed"
        account = Account.from_key(key)
        return HotWallet(account)

    @staticmethod
    def create_for_testing() -> "HotWallet":
        """Create a new random hot wallet with its nonce starting at zero."""
        wallet = HotWallet(Account.create())
        wallet.current_nonce = 0
        return wallet
