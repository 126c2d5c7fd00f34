"""ABI loading from the bundled contract interfaces.

Provides functions to load ABI files and construct :py:class:`web3.contract.Contract` types
for the factory, router, pool and ERC-20 contracts the liquidity cycle talks to.
The results are cached for the speedup.

We also provide helpers to encode the opaque ``bytes data`` payloads the router takes.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Type, Union

from eth_abi import encode
from eth_typing import HexAddress
from web3 import Web3
from web3.contract import Contract

# How big are our ABI and contract caches
_CACHE_SIZE = 64

#: Ethereum 0x0000000000000000000000000000000000000000 address as a string.
#:
#: The factory returns this when the pool does not exist.
#:
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

#: Classic pool factory interface
FACTORY_ABI = "SyncSwapClassicPoolFactory.json"

#: Router interface with ``addLiquidity2`` and ``burnLiquidity``
ROUTER_ABI = "SyncSwapRouter.json"

#: Classic pool interface. The pool is also the LP token.
POOL_ABI = "SyncSwapClassicPool.json"

#: Minimal ERC-20 interface
ERC20_ABI = "ERC20.json"


@lru_cache(maxsize=_CACHE_SIZE)
def get_abi_by_filename(fname: str) -> list:
    """Reads a embedded ABI file and returns it.

    Example::

        abi = get_abi_by_filename("ERC20.json")

    Loaded ABI files are cache in in-process memory to speed up future loading.

    :param fname: JSON filename in the bundled ``abi`` folder.
    :return: ABI as a list of function entries, Etherscan style.
    """

    here = Path(__file__).resolve().parent
    abi_path = here / "abi" / Path(fname)
    with open(abi_path, "rt", encoding="utf-8") as f:
        abi = json.load(f)
    return abi


@lru_cache(maxsize=_CACHE_SIZE)
def get_contract(web3: Web3, fname: str) -> Type[Contract]:
    """Get Contract proxy class from ABI JSON file.

    Any results are cached. Web3 connection is part of the cache key.

    Example:

    .. code-block:: python

        ERC20 = get_contract(web3, "ERC20.json")

    :param web3:
        Web3 instance

    :param fname:
        Bundled ABI filename

    :return:
        Contract proxy class
    """
    abi = get_abi_by_filename(fname)
    assert type(abi) == list, f"Expected Etherscan style ABI list in {fname}"
    return web3.eth.contract(abi=abi)


def get_deployed_contract(
    web3: Web3,
    fname: str,
    address: Union[HexAddress, str],
) -> Contract:
    """Get a Contract proxy object for a contract deployed at a specific address.

    Creating the proxy does not do any JSON-RPC calls, so this works
    against a disconnected :py:class:`Web3` instance as well.

    :param web3:
        Web3 instance

    :param fname:
        Bundled ABI filename, e.g. :py:data:`POOL_ABI`

    :param address:
        Ethereum address of the deployed contract

    :return:
        `web3.contract.Contract` proxy
    """
    assert isinstance(web3, Web3), f"Got {type(web3)} instead of Web3"
    assert address, f"get_deployed_contract() address was None"

    address = Web3.to_checksum_address(address)

    Contract = get_contract(web3, fname)
    return Contract(address)


def encode_deposit_data(recipient: Union[HexAddress, str]) -> bytes:
    """Encode the ``data`` payload for ``addLiquidity2``.

    The payload is the LP token recipient as a single 32 bytes word.
    """
    recipient = Web3.to_checksum_address(recipient)
    return encode(["address"], [recipient])


def encode_withdraw_data(recipient: Union[HexAddress, str], withdraw_mode: int) -> bytes:
    """Encode the ``data`` payload for ``burnLiquidity``.

    Two 32 bytes words: the recipient of the underlying tokens and the withdraw mode.

    :param withdraw_mode:
        ``0`` keep in the vault, ``1`` withdraw and unwrap the wrapped native token,
        ``2`` withdraw wrapped.
    """
    assert 0 <= withdraw_mode <= 255, f"Bad withdraw mode {withdraw_mode}"
    recipient = Web3.to_checksum_address(recipient)
    return encode(["address", "uint8"], [recipient, withdraw_mode])
