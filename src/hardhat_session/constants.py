"""Constants for hardhat-session."""

HARDHAT_URI = "http://localhost:8545"

# Well-known keys of the first two Hardhat development accounts.
HARDHAT_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
HARDHAT_PRIVATE_KEY_2 = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"

ALCHEMY_MAINNET_URL = "https://eth-mainnet.alchemyapi.io/v2/{key}"
DEFAULT_FORK_BLOCK = 12330245

DEFAULT_GAS_LIMIT = 9_500_000
DEFAULT_GAS_PRICE = 8_000_000_000
DEFAULT_TRANSFER_GAS_PRICE = 1_000_000_000
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_RECEIPT_TIMEOUT = 120.0

E18 = 10**18

# Selector of Solidity's Error(string) revert payload.
ERROR_STRING_SELECTOR = bytes.fromhex("08c379a0")


class RpcMethod:
    """JSON-RPC methods issued by the coordinator."""

    CHAIN_ID = "eth_chainId"
    GET_BALANCE = "eth_getBalance"
    GET_TRANSACTION_COUNT = "eth_getTransactionCount"
    BLOCK_NUMBER = "eth_blockNumber"
    GET_BLOCK_BY_NUMBER = "eth_getBlockByNumber"
    SNAPSHOT = "evm_snapshot"
    REVERT = "evm_revert"
    INCREASE_TIME = "evm_increaseTime"
    MINE = "evm_mine"
    IMPERSONATE_ACCOUNT = "hardhat_impersonateAccount"
    STOP_IMPERSONATING_ACCOUNT = "hardhat_stopImpersonatingAccount"
    RESET = "hardhat_reset"
