"""eth_lp_cycle package root.

Add liquidity to a SyncSwap style classic pool and remove it right away.
See :py:func:`eth_lp_cycle.liquidity.add_and_remove_liquidity`.
"""

import sys


#: Minimum required Python version to run this package
MIN_PYTHON_VERSION = (3, 10)


def _check_python_version():
    """Try early abort if the Python version is too old."""
    if sys.version_info < MIN_PYTHON_VERSION:
        raise RuntimeError(f"web3-lp-cycle needs Python {MIN_PYTHON_VERSION[0]}.{MIN_PYTHON_VERSION[1]} or later")


_check_python_version()
