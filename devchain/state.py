import copy
from typing import Dict, List, Optional

from devchain.accounts import normalize_address


def _check_amount(amount):
    # bool is an int subclass; reject it explicitly
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise ValueError(f"Balance must be a non-negative integer, got {amount!r}")


class State:
    """
    Account store: address -> native balance, nonce and token balances.

    Only the Ledger mutates a live State. Every method validates its address
    arguments and raises InvalidAddress for malformed ones.
    """

    def __init__(self):
        # { address: {'balance': int, 'nonce': int, 'tokens': {token_address: int}} }
        self.accounts: Dict[str, dict] = {}

    # =========================================================================
    # READS
    # =========================================================================

    def get_balance(self, address: str, token: Optional[str] = None) -> int:
        """Native balance, or the balance of `token` (0 if account doesn't exist)."""
        address = normalize_address(address)
        account = self.accounts.get(address)
        if account is None:
            return 0
        if token is None:
            return account["balance"]
        return account["tokens"].get(normalize_address(token), 0)

    def get_nonce(self, address: str) -> int:
        """Get account nonce (0 if account doesn't exist)."""
        account = self.accounts.get(normalize_address(address))
        return account["nonce"] if account else 0

    def exists(self, address: str) -> bool:
        return normalize_address(address) in self.accounts

    def addresses(self) -> List[str]:
        return list(self.accounts)

    def total_supply(self, token: str) -> int:
        """Sum of `token` balances across all accounts."""
        token = normalize_address(token)
        return sum(acc["tokens"].get(token, 0) for acc in self.accounts.values())

    # =========================================================================
    # WRITES
    # =========================================================================

    def get_account(self, address: str) -> dict:
        """Return the account record, creating an empty one if needed."""
        address = normalize_address(address)
        if address not in self.accounts:
            self.accounts[address] = {
                "balance": 0,
                "nonce": 0,
                "tokens": {},
            }
        return self.accounts[address]

    def set_balance(self, address: str, amount: int, token: Optional[str] = None):
        _check_amount(amount)
        account = self.get_account(address)
        if token is None:
            account["balance"] = amount
        else:
            account["tokens"][normalize_address(token)] = amount

    def increment_nonce(self, address: str) -> int:
        account = self.get_account(address)
        account["nonce"] += 1
        return account["nonce"]

    def copy(self) -> "State":
        """Return an independent copy of state for snapshots and validation."""
        return copy.deepcopy(self)

    def __eq__(self, other):
        return isinstance(other, State) and self.accounts == other.accounts
