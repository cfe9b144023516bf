import time
import hashlib
import json
from typing import List, Optional
from devchain.transaction import Transaction
from devchain.config import GENESIS_TIMESTAMP

GENESIS_PARENT_HASH = "0x" + "0" * 64


def _sha256(data: str) -> str:
    return hashlib.sha256(data.encode()).hexdigest()


def _calculate_merkle_root(transactions: List[Transaction]) -> Optional[str]:
    if not transactions:
        return None

    tx_hashes = [
        _sha256(json.dumps(tx.to_dict(), sort_keys=True))
        for tx in transactions
    ]

    while len(tx_hashes) > 1:
        if len(tx_hashes) % 2 != 0:
            tx_hashes.append(tx_hashes[-1])  # duplicate last if odd

        new_level = []
        for i in range(0, len(tx_hashes), 2):
            combined = tx_hashes[i] + tx_hashes[i + 1]
            new_level.append(_sha256(combined))

        tx_hashes = new_level

    return tx_hashes[0]


class Block:
    def __init__(
        self,
        number: int,
        parent_hash: str,
        transactions: Optional[List[Transaction]] = None,
        timestamp: Optional[int] = None,
    ):
        self.number = number
        self.parent_hash = parent_hash
        self.transactions: List[Transaction] = transactions or []

        # Milliseconds
        self.timestamp: int = (
            round(time.time() * 1000)
            if timestamp is None
            else int(timestamp)
        )

        self.merkle_root: Optional[str] = _calculate_merkle_root(self.transactions)
        self.hash: str = self.compute_hash()

    def to_header_dict(self):
        return {
            "number": self.number,
            "parent_hash": self.parent_hash,
            "merkle_root": self.merkle_root,
            "timestamp": self.timestamp,
        }

    def to_dict(self):
        return {
            **self.to_header_dict(),
            "transactions": [tx.to_dict() for tx in self.transactions],
            "hash": self.hash,
        }

    def compute_hash(self) -> str:
        header_string = json.dumps(
            self.to_header_dict(),
            sort_keys=True
        )
        return "0x" + _sha256(header_string)

    @staticmethod
    def from_dict(data: dict) -> "Block":
        """Create block from dictionary."""
        txs = [Transaction.from_dict(tx) for tx in data.get("transactions", [])]
        block = Block(
            number=data["number"],
            parent_hash=data["parent_hash"],
            transactions=txs,
            timestamp=data.get("timestamp"),
        )
        if data.get("hash") and data["hash"] != block.hash:
            raise ValueError(f"Block #{block.number} hash mismatch")
        return block

    def __repr__(self):
        return f"Block(#{self.number}, txs={len(self.transactions)}, hash={self.hash[:10]})"


def create_genesis_block() -> Block:
    """Create the genesis (first) block. Balances are funded by the ledger, not by transactions."""
    return Block(
        number=0,
        parent_hash=GENESIS_PARENT_HASH,
        transactions=[],
        timestamp=round(GENESIS_TIMESTAMP * 1000),
    )
