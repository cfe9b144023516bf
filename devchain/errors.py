class LedgerError(ValueError):
    """Base class for recoverable ledger failures. State is left unchanged."""


class InvalidAddress(LedgerError):
    """Raised when an address is not 0x followed by 40 hex characters."""


class InsufficientBalance(LedgerError):
    """Raised when the sender cannot cover the transfer amount."""


class InvalidAmount(InsufficientBalance):
    """Raised when the transfer amount is not a positive integer."""


class UnknownSnapshot(LedgerError):
    """Raised when restoring a snapshot id that was never taken or was already consumed."""


class UnknownAccount(LedgerError):
    """Raised when sending from an address the network holds no key for."""


class UnknownToken(LedgerError):
    """Raised when a token address has no deployed token."""


class InvalidSignature(LedgerError):
    """Raised when a transaction signature does not match its sender."""


class UnknownNetwork(LedgerError):
    """Raised when a network name is not configured."""
