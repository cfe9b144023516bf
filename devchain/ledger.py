import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Set, Union

from nacl.encoding import HexEncoder
from nacl.hash import sha256

from devchain.accounts import Signer, derive_signers, normalize_address
from devchain.block import Block, create_genesis_block
from devchain.config import (
    ACCOUNT_COUNT,
    CHAIN_ID,
    DEFAULT_MNEMONIC,
    INITIAL_BALANCE,
    TOKEN_NAME,
    TOKEN_SUPPLY,
    TOKEN_SYMBOL,
    TRANSFER_EVENT,
)
from devchain.errors import (
    InsufficientBalance,
    InvalidAmount,
    InvalidSignature,
    LedgerError,
    UnknownAccount,
    UnknownToken,
)
from devchain.events import Event, EventFilter, EventLog, EventQuery
from devchain.snapshot import SnapshotManager
from devchain.state import State
from devchain.token import Token
from devchain.transaction import Transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferResult:
    tx_hash: str
    block_number: int
    sender_balance: int
    recipient_balance: int
    event: Optional[Event] = None


class Ledger:
    """
    In-memory single-node chain with funded developer accounts.

    Every accepted transaction is mined into its own block. Transactions are
    validated against a copy of the state and committed only if they succeed,
    so a failed call leaves balances, nonces, blocks and events untouched.
    """

    def __init__(
        self,
        account_count: int = ACCOUNT_COUNT,
        initial_balance: int = INITIAL_BALANCE,
        mnemonic: str = DEFAULT_MNEMONIC,
        chain_id: int = CHAIN_ID,
    ):
        self.chain_id = chain_id
        self.initial_balance = initial_balance
        self.signers: List[Signer] = derive_signers(account_count, mnemonic)
        self._signers_by_address: Dict[str, Signer] = {s.address: s for s in self.signers}
        self._lock = threading.RLock()
        self.snapshots = SnapshotManager(self)
        self._create_genesis()

    def _create_genesis(self):
        self.state = State()
        for signer in self.signers:
            self.state.set_balance(signer.address, self.initial_balance)
        self.chain: List[Block] = [create_genesis_block()]
        self.event_log = EventLog()
        self.tokens: Dict[str, dict] = {}
        self.primary_token: Optional[str] = None
        self._transactions: Dict[str, Transaction] = {}
        self._impersonated: Set[str] = set()

    # =========================================================================
    # CHAIN INFO
    # =========================================================================

    @property
    def accounts(self) -> List[str]:
        return [s.address for s in self.signers]

    @property
    def last_block(self) -> Block:
        with self._lock:
            return self.chain[-1]

    @property
    def block_number(self) -> int:
        with self._lock:
            return self.chain[-1].number

    def get_block(self, number: int) -> Optional[Block]:
        with self._lock:
            if 0 <= number < len(self.chain):
                return self.chain[number]
            return None

    def get_transaction(self, tx_hash: str) -> Optional[Transaction]:
        return self._transactions.get(tx_hash)

    def get_signer(self, account: Union[int, str]) -> Signer:
        if isinstance(account, int):
            return self.signers[account]
        address = normalize_address(account)
        if address not in self._signers_by_address:
            raise UnknownAccount(f"No signer for {address}")
        return self._signers_by_address[address]

    def get_balance(self, address: str) -> int:
        """Native balance in wei."""
        return self.state.get_balance(address)

    def get_nonce(self, address: str) -> int:
        return self.state.get_nonce(address)

    def token_balance(self, address: str, token: Optional[str] = None) -> int:
        return self.state.get_balance(address, token=self._token_address(token))

    def get_token(self, address: Optional[str] = None) -> Token:
        return Token(self, self._token_address(address))

    def events(self, event_filter: Optional[EventFilter] = None) -> EventQuery:
        return self.event_log.query(event_filter)

    def _token_address(self, token: Optional[str]) -> str:
        if token is None:
            if self.primary_token is None:
                raise UnknownToken("No token deployed")
            return self.primary_token
        token = normalize_address(token)
        if token not in self.tokens:
            raise UnknownToken(f"No token deployed at {token}")
        return token

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    def deploy_token(
        self,
        owner: Optional[str] = None,
        name: str = TOKEN_NAME,
        symbol: str = TOKEN_SYMBOL,
        total_supply: int = TOKEN_SUPPLY,
    ) -> Token:
        """Deploy a fixed-supply token; the whole supply goes to `owner`."""
        if owner is None:
            if not self.signers:
                raise UnknownAccount("No developer accounts")
            owner = self.signers[0].address
        with self._lock:
            tx = self._build_transaction(owner, None, 0, {
                "method": "deploy",
                "args": [name, symbol, total_supply],
            })
            self.send_transaction(tx)
        return Token(self, self.derive_contract_address(tx.sender, tx.nonce))

    def transfer(self, sender: str, recipient: str, amount: int, token: Optional[str] = None) -> TransferResult:
        """Move `amount` tokens from `sender` to `recipient` (primary token unless `token` is given)."""
        with self._lock:
            token = self._token_address(token)
            tx = self._build_transaction(sender, token, 0, {
                "method": "transfer",
                "args": [recipient, amount],
            })
            block, events = self.send_transaction(tx)
            return TransferResult(
                tx_hash=tx.hash(),
                block_number=block.number,
                sender_balance=self.state.get_balance(tx.sender, token=token),
                recipient_balance=self.state.get_balance(recipient, token=token),
                event=events[0],
            )

    def send_value(self, sender: str, recipient: str, amount: int) -> TransferResult:
        """Move native currency. Emits no event."""
        with self._lock:
            tx = self._build_transaction(sender, normalize_address(recipient), amount)
            block, _ = self.send_transaction(tx)
            return TransferResult(
                tx_hash=tx.hash(),
                block_number=block.number,
                sender_balance=self.state.get_balance(tx.sender),
                recipient_balance=self.state.get_balance(recipient),
            )

    def _build_transaction(self, sender, receiver, amount, data=None) -> Transaction:
        sender = normalize_address(sender)
        with self._lock:
            tx = Transaction(
                sender=sender,
                receiver=receiver,
                amount=amount,
                nonce=self.state.get_nonce(sender),
                data=data,
            )
            if sender in self._impersonated:
                return tx
            if sender not in self._signers_by_address:
                raise UnknownAccount(f"Unknown account {sender}: not a developer account and not impersonated")
            tx.sign(self._signers_by_address[sender])
            return tx

    def send_transaction(self, tx: Transaction):
        """
        Validate and apply a transaction, then mine it into a new block.
        Returns (block, events). Raises a LedgerError subclass and leaves
        state unchanged if the transaction is invalid.
        """
        with self._lock:
            sender = normalize_address(tx.sender)

            if sender not in self._impersonated and not tx.verify():
                logger.warning("Transaction from %s rejected: invalid signature", sender)
                raise InvalidSignature(f"Invalid signature for transaction from {sender}")

            expected_nonce = self.state.get_nonce(sender)
            if tx.nonce != expected_nonce:
                logger.warning("Transaction from %s rejected: bad nonce %s", sender, tx.nonce)
                raise LedgerError(f"Bad nonce: expected {expected_nonce}, got {tx.nonce}")

            # Validate on a temporary copy; commit only on success
            temp_state = self.state.copy()
            try:
                emitted, deployed = self._apply(temp_state, tx)
            except LedgerError as e:
                logger.warning("Transaction from %s rejected: %s", sender, e)
                raise
            temp_state.increment_nonce(sender)

            block = Block(
                number=self.last_block.number + 1,
                parent_hash=self.last_block.hash,
                transactions=[tx],
                timestamp=self._next_timestamp(),
            )
            tx_hash = tx.hash()

            self.state = temp_state
            self.chain.append(block)
            self._transactions[tx_hash] = tx
            if deployed is not None:
                address, metadata = deployed
                self.tokens[address] = metadata
                if self.primary_token is None:
                    self.primary_token = address
                logger.info("Token %s (%s) deployed at %s", metadata["name"], metadata["symbol"], address)

            events = []
            for address, kind, args in emitted:
                event = Event(
                    kind=kind,
                    args=args,
                    sequence=self.event_log.next_sequence,
                    address=address,
                    block_number=block.number,
                    tx_hash=tx_hash,
                )
                self.event_log.append(event)
                events.append(event)

            logger.info("Block #%d mined: %s", block.number, tx)
            return block, events

    def _apply(self, state: State, tx: Transaction):
        """Apply `tx` to `state`. Returns (emitted events, deployed token or None)."""
        if tx.data is None:
            self._move(state, tx.sender, tx.receiver, tx.amount)
            return [], None

        if tx.amount:
            raise LedgerError("Token calls do not accept native value")

        if not isinstance(tx.data, dict):
            raise LedgerError(f"Malformed call data: expected a dict, got {type(tx.data).__name__}")

        method = tx.data.get("method")
        args = tx.data.get("args", [])
        if not isinstance(args, (list, tuple)):
            raise LedgerError(f"Malformed call data: args must be a list, got {type(args).__name__}")

        if method == "deploy":
            if len(args) != 3:
                raise LedgerError(f"Malformed call data: deploy takes 3 args, got {len(args)}")
            name, symbol, total_supply = args
            if isinstance(total_supply, bool) or not isinstance(total_supply, int) or total_supply <= 0:
                raise InvalidAmount(f"Total supply must be a positive integer, got {total_supply!r}")
            address = self.derive_contract_address(tx.sender, tx.nonce)
            if address in self.tokens:
                raise LedgerError(f"Contract already deployed at {address}")
            state.set_balance(tx.sender, total_supply, token=address)
            metadata = {
                "name": name,
                "symbol": symbol,
                "total_supply": total_supply,
                "owner": normalize_address(tx.sender),
            }
            return [], (address, metadata)

        if method == "transfer":
            token = self._token_address(tx.receiver)
            if len(args) != 2:
                raise LedgerError(f"Malformed call data: transfer takes 2 args, got {len(args)}")
            recipient, amount = args
            recipient = self._move(state, tx.sender, recipient, amount, token=token)
            return [(token, TRANSFER_EVENT, (normalize_address(tx.sender), recipient, amount))], None

        raise LedgerError(f"Unknown method: {method!r}")

    @staticmethod
    def _move(state: State, sender: str, recipient: str, amount, token: Optional[str] = None) -> str:
        recipient = normalize_address(recipient)
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidAmount(f"Amount must be a positive integer, got {amount!r}")

        balance = state.get_balance(sender, token=token)
        if balance < amount:
            raise InsufficientBalance(
                f"Not enough {'tokens' if token else 'funds'}: {sender} has {balance}, needs {amount}"
            )

        state.set_balance(sender, balance - amount, token=token)
        # Read after the debit so a self-transfer nets to zero
        state.set_balance(recipient, state.get_balance(recipient, token=token) + amount, token=token)
        return recipient

    def _next_timestamp(self) -> int:
        # Block timestamps strictly increase by at least one second
        now = round(time.time() * 1000)
        return max(now, self.last_block.timestamp + 1000)

    @staticmethod
    def derive_contract_address(sender: str, nonce: int) -> str:
        raw = f"{normalize_address(sender)}:{nonce}".encode()
        return "0x" + sha256(raw, encoder=HexEncoder).decode()[:40]

    # =========================================================================
    # DEVELOPMENT HELPERS
    # =========================================================================

    def mine(self, blocks: int = 1) -> Block:
        """Mine `blocks` empty blocks and return the last one."""
        if blocks < 1:
            raise ValueError("Must mine at least one block")
        with self._lock:
            for _ in range(blocks):
                block = Block(
                    number=self.last_block.number + 1,
                    parent_hash=self.last_block.hash,
                    transactions=[],
                    timestamp=self._next_timestamp(),
                )
                self.chain.append(block)
            logger.info("Mined %d empty block(s), height now %d", blocks, block.number)
            return block

    def set_balance(self, address: str, amount: int):
        """Overwrite a native balance."""
        with self._lock:
            self.state.set_balance(address, amount)

    def impersonate(self, address: str):
        with self._lock:
            self._impersonated.add(normalize_address(address))

    def stop_impersonating(self, address: str):
        with self._lock:
            self._impersonated.discard(normalize_address(address))

    def snapshot(self) -> str:
        return self.snapshots.capture()

    def revert(self, snapshot_id: str):
        self.snapshots.restore(snapshot_id)

    def load_fixture(self, fixture: Callable):
        return self.snapshots.load_fixture(fixture)

    def reset(self):
        """Back to freshly funded genesis; all snapshots are discarded."""
        with self._lock:
            self._create_genesis()
            self.snapshots.clear()
            logger.info("Ledger reset to genesis")

    def export_state(self) -> dict:
        with self._lock:
            return {
                "state": self.state.copy(),
                "chain": list(self.chain),
                "events": len(self.event_log),
                "tokens": {addr: dict(meta) for addr, meta in self.tokens.items()},
                "primary_token": self.primary_token,
                "transactions": dict(self._transactions),
                "impersonated": set(self._impersonated),
            }

    def import_state(self, saved: dict):
        with self._lock:
            # Copy again so the saved snapshot stays untouched by later mutation
            self.state = saved["state"].copy()
            self.chain = list(saved["chain"])
            self.event_log.truncate(saved["events"])
            self.tokens = {addr: dict(meta) for addr, meta in saved["tokens"].items()}
            self.primary_token = saved["primary_token"]
            self._transactions = dict(saved["transactions"])
            self._impersonated = set(saved["impersonated"])
