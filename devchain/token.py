from typing import Optional

from devchain.config import TRANSFER_EVENT
from devchain.errors import UnknownToken
from devchain.events import EventFilter


class Token:
    """
    Handle to a fixed-supply token deployed on a ledger.

    Holds only the token address; metadata and balances live in the ledger,
    so a handle stops working once the ledger reverts past the deployment.
    """

    def __init__(self, ledger, address: str):
        self.ledger = ledger
        self.address = address

    @property
    def _metadata(self) -> dict:
        metadata = self.ledger.tokens.get(self.address)
        if metadata is None:
            raise UnknownToken(f"No token deployed at {self.address}")
        return metadata

    @property
    def name(self) -> str:
        return self._metadata["name"]

    @property
    def symbol(self) -> str:
        return self._metadata["symbol"]

    @property
    def total_supply(self) -> int:
        return self._metadata["total_supply"]

    @property
    def owner(self) -> str:
        return self._metadata["owner"]

    def balance_of(self, address: str) -> int:
        return self.ledger.token_balance(address, token=self.address)

    def transfer(self, sender: str, recipient: str, amount: int):
        return self.ledger.transfer(sender, recipient, amount, token=self.address)

    def events(self, sender: Optional[str] = None, recipient: Optional[str] = None,
               from_block: Optional[int] = None, to_block: Optional[int] = None):
        """Transfer events emitted by this token."""
        return self.ledger.events(EventFilter(
            kind=TRANSFER_EVENT,
            address=self.address,
            sender=sender,
            recipient=recipient,
            from_block=from_block,
            to_block=to_block,
        ))

    def __eq__(self, other):
        return isinstance(other, Token) and other.ledger is self.ledger and other.address == self.address

    def __hash__(self):
        return hash(self.address)

    def __repr__(self):
        return f"Token({self.address})"
