"""Errors terminating a liquidity cycle.

None of these are retried or recovered inside the package.
"""

from typing import Optional

from hexbytes import HexBytes


class LiquidityCycleError(Exception):
    """Base class for errors aborting a liquidity cycle.

    When the error escapes :py:func:`eth_lp_cycle.liquidity.add_and_remove_liquidity`,
    :py:attr:`completed_tx_hashes` lists the transactions that were confirmed
    before the failure. E.g. a deposit hash here with a failed withdrawal
    means the LP position is still outstanding.
    """

    def __init__(self, *args):
        super().__init__(*args)
        self.completed_tx_hashes: list[HexBytes] = []


class ConfigurationError(LiquidityCycleError, ValueError):
    """Signing credential or other required configuration is missing."""


class PoolNotFoundError(LiquidityCycleError):
    """The factory returned the zero address for the token pair."""


class EstimationError(LiquidityCycleError):
    """Gas estimation failed, the transaction would revert."""


class TransactionRevertedError(LiquidityCycleError):
    """Transaction was mined, but failed."""

    def __init__(self, message: str, tx_hash: HexBytes, revert_reason: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash
        self.revert_reason = revert_reason


class PricingPreconditionError(LiquidityCycleError):
    """Pool has zero reserve on one side and cannot be priced."""


class RemoteUnavailableError(LiquidityCycleError):
    """JSON-RPC node could not be reached or did not answer."""


class TransactionRejectedError(RemoteUnavailableError):
    """Node refused to accept a signed transaction, e.g. nonce too low or insufficient funds."""


class ConfirmationTimedOut(LiquidityCycleError):
    """We exceeded the transaction confirmation timeout."""
