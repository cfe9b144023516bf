"""
config.py - devchain configuration constants.
Settings for the local development network.
"""

# Chain identifier reported by the local network
CHAIN_ID = 31337

# Fixed local endpoint of the persistent node
HOST = "127.0.0.1"
PORT = 8545

# Genesis block timestamp (fixed for reproducibility)
GENESIS_TIMESTAMP = 1704067200.0

# Developer accounts are derived from this phrase, so every run gets the same keys.
# Never use these keys outside a local network.
DEFAULT_MNEMONIC = "test test test test test test test test test test test junk"

# Number of funded developer accounts
ACCOUNT_COUNT = 20

# Initial native balance of each developer account (10,000 ETH in wei)
WEI_PER_ETHER = 10 ** 18
INITIAL_BALANCE = 10_000 * WEI_PER_ETHER

# Example token defaults
TOKEN_NAME = "My Hardhat Token"
TOKEN_SYMBOL = "MHT"
TOKEN_SUPPLY = 1_000_000

# Event emitted by token transfers
TRANSFER_EVENT = "Transfer"

# Named networks
NETWORKS = {
    "hardhat": {
        "chain_id": CHAIN_ID,
        "url": None,
        "persistent": False,
    },
    "localhost": {
        "chain_id": CHAIN_ID,
        "url": f"http://{HOST}:{PORT}",
        "persistent": True,
    },
}

DEFAULT_NETWORK = "hardhat"
