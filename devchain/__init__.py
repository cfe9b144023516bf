# Core modules
from .accounts import Signer, derive_signer, derive_signers, is_address, normalize_address, ZERO_ADDRESS
from .block import Block
from .transaction import Transaction
from .state import State
from .events import Event, EventFilter, EventLog
from .snapshot import SnapshotManager
from .token import Token
from .ledger import Ledger, TransferResult

# Errors
from .errors import (
    LedgerError,
    InvalidAddress,
    InsufficientBalance,
    InvalidAmount,
    UnknownSnapshot,
    UnknownAccount,
    UnknownToken,
    InvalidSignature,
    UnknownNetwork,
)

# Networks
from .network import get_ledger, run_script

__all__ = [
    # Core
    "Signer",
    "derive_signer",
    "derive_signers",
    "is_address",
    "normalize_address",
    "ZERO_ADDRESS",
    "Block",
    "Transaction",
    "State",
    "Event",
    "EventFilter",
    "EventLog",
    "SnapshotManager",
    "Token",
    "Ledger",
    "TransferResult",
    # Errors
    "LedgerError",
    "InvalidAddress",
    "InsufficientBalance",
    "InvalidAmount",
    "UnknownSnapshot",
    "UnknownAccount",
    "UnknownToken",
    "InvalidSignature",
    "UnknownNetwork",
    # Networks
    "get_ledger",
    "run_script",
]
