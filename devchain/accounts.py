import re
from typing import List

from nacl.encoding import HexEncoder, RawEncoder
from nacl.hash import sha256
from nacl.signing import SigningKey, VerifyKey

from devchain.config import ACCOUNT_COUNT, DEFAULT_MNEMONIC
from devchain.errors import InvalidAddress

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")

# Genesis and minting transactions come from here
ZERO_ADDRESS = "0x" + "0" * 40


def is_address(value) -> bool:
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value))


def normalize_address(value) -> str:
    """Validate an address and return its lowercase form."""
    if not is_address(value):
        raise InvalidAddress(f"Invalid address: {value!r}")
    return value.lower()


def address_from_verify_key(verify_key: VerifyKey) -> str:
    """Address = last 20 bytes of sha256(public key)."""
    digest = sha256(verify_key.encode(), encoder=HexEncoder).decode()
    return "0x" + digest[-40:]


class Signer:
    """A developer account: signing key plus its derived address."""

    def __init__(self, signing_key: SigningKey):
        self.signing_key = signing_key
        self.verify_key = signing_key.verify_key
        self.address = address_from_verify_key(self.verify_key)

    @classmethod
    def generate(cls) -> "Signer":
        return cls(SigningKey.generate())

    @property
    def public_key(self) -> str:
        return self.verify_key.encode(encoder=HexEncoder).decode()

    def sign(self, payload: bytes) -> str:
        return self.signing_key.sign(payload).signature.hex()

    def __repr__(self):
        return f"Signer({self.address})"


def derive_signer(index: int, mnemonic: str = DEFAULT_MNEMONIC) -> Signer:
    """Derive the signer at `index` from the mnemonic. Same inputs, same key."""
    if index < 0:
        raise ValueError("Account index must be non-negative")
    seed = sha256(f"{mnemonic}/{index}".encode("utf-8"), encoder=RawEncoder)
    return Signer(SigningKey(seed))


def derive_signers(count: int = ACCOUNT_COUNT, mnemonic: str = DEFAULT_MNEMONIC) -> List[Signer]:
    return [derive_signer(i, mnemonic) for i in range(count)]
