import json
import time
import hashlib

from nacl.signing import VerifyKey
from nacl.encoding import HexEncoder
from nacl.exceptions import BadSignatureError, CryptoError

from devchain.accounts import Signer, ZERO_ADDRESS, address_from_verify_key


class Transaction:
    def __init__(self, sender, receiver, amount, nonce, data=None, public_key=None, signature=None, timestamp=None):
        self.sender = sender            # 0x address
        self.receiver = receiver        # 0x address, or None for a deployment
        self.amount = amount            # native value in wei
        self.nonce = nonce
        self.data = data                # call description, e.g. {"method": "transfer", "args": [...]}
        self.public_key = public_key    # Hex str, set by sign()
        self.timestamp = round(timestamp * 1000) if timestamp is not None else round(time.time() * 1000)  # Integer milliseconds for determinism
        self.signature = signature      # Hex str

    def to_dict(self):
        return {
            "sender": self.sender,
            "receiver": self.receiver,
            "amount": self.amount,
            "nonce": self.nonce,
            "data": self.data,
            "public_key": self.public_key,
            "timestamp": self.timestamp,
            "signature": self.signature,
        }

    @staticmethod
    def from_dict(data: dict) -> "Transaction":
        """Create transaction from dictionary."""
        return Transaction(
            sender=data["sender"],
            receiver=data["receiver"],
            amount=data["amount"],
            nonce=data["nonce"],
            data=data.get("data"),
            public_key=data.get("public_key"),
            signature=data.get("signature"),
            timestamp=data.get("timestamp") / 1000 if data.get("timestamp") else None,
        )

    def hash(self) -> str:
        """Get unique hash of this transaction."""
        return "0x" + hashlib.sha256(self.hash_payload).hexdigest()

    @property
    def hash_payload(self):
        """Returns the bytes to be signed."""
        payload = {
            "sender": self.sender,
            "receiver": self.receiver,
            "amount": self.amount,
            "nonce": self.nonce,
            "data": self.data,
            "timestamp": self.timestamp,
        }
        return json.dumps(payload, sort_keys=True).encode("utf-8")

    def sign(self, signer: Signer):
        # Validate that the signing key matches the sender
        if signer.address != self.sender:
            raise ValueError("Signing key does not match sender")
        self.public_key = signer.public_key
        self.signature = signer.sign(self.hash_payload)

    def is_genesis(self) -> bool:
        return self.sender == ZERO_ADDRESS

    def verify(self) -> bool:
        if self.is_genesis():
            return True

        if not self.signature or not self.public_key:
            return False

        try:
            verify_key = VerifyKey(self.public_key, encoder=HexEncoder)
            if address_from_verify_key(verify_key) != self.sender:
                return False
            verify_key.verify(self.hash_payload, bytes.fromhex(self.signature))
            return True

        except (BadSignatureError, CryptoError, ValueError, TypeError):
            # Tampered payload, malformed key hex, or malformed signature hex
            return False

    def __repr__(self):
        return f"Tx({self.sender[:10]}→{(self.receiver or 'DEPLOY')[:10]}, {self.amount}, nonce={self.nonce})"
