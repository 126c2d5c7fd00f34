"""Known deployments and default cycle policy."""

import datetime

#: SyncSwap classic pool deployments we know about
SYNCSWAP_DEPLOYMENTS = {
    # https://syncswap.gitbook.io/api-documentation/resources/smart-contract
    "zksync": {
        "chain_id": 324,
        "json_rpc_url": "https://mainnet.era.zksync.io",
        "factory": "0xf2DAd89f2788a8CD54625C60b55cD3d2D0ACa7Cb",
        "router": "0x2da10A1e27bF85cEdD8FFb1AbBe97e53391C0295",
    },
}

#: Accepted shortfall against the estimated LP mint and withdrawal amounts, 5%
DEFAULT_SLIPPAGE_BPS = 500

#: Extra gas on top of the burnLiquidity() estimate, 10%
DEFAULT_WITHDRAW_GAS_BUFFER_BPS = 1000

#: Pause after each approval transaction
DEFAULT_APPROVAL_SETTLE_DELAY = datetime.timedelta(seconds=3)

#: Pause after the deposit before reading the LP balance
DEFAULT_DEPOSIT_SETTLE_DELAY = datetime.timedelta(seconds=5)

#: Tokens that refuse to change a non-zero allowance to another non-zero value
DEFAULT_ALLOWANCE_RESET_SYMBOLS = frozenset({"USDT"})

#: burnLiquidity() withdraw mode: withdraw and unwrap the wrapped native token
DEFAULT_WITHDRAW_MODE = 1

#: A mined transaction counts as one confirmation
DEFAULT_CONFIRMATIONS = 1

#: How long we wait for a transaction receipt
DEFAULT_CONFIRMATION_TIMEOUT = datetime.timedelta(minutes=5)

#: How often we poll for a transaction receipt
DEFAULT_POLL_DELAY = datetime.timedelta(seconds=1)

#: Basis point denominator
BPS = 10_000
