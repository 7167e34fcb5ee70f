"""Per-message key derivation from the shared secret and a ratchet counter.

Each message key is HKDF-SHA256 over the session's shared secret, salted with
``b"ratchet-" + <counter in decimal>``. Keys for different counters are
independent; recovering one says nothing about another without the shared
secret itself.
"""

from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.hashes import SHA256

from .types import (
    InvalidInputError,
    KEY_SIZE,
    MAX_RATCHET_COUNTER,
    RATCHET_INFO,
    RATCHET_SALT_PREFIX,
    SHARED_SECRET_SIZE,
)


def check_counter(counter: int) -> int:
    """Validate a ratchet counter as an unsigned 64-bit integer.

    Raises:
        InvalidInputError: If the counter is not an int or is out of range.
    """
    if isinstance(counter, bool) or not isinstance(counter, int):
        raise InvalidInputError(f"Ratchet counter must be an int, got {type(counter).__name__}")
    # Never format the value here: str() fails past 4300 digits.
    if not 0 <= counter <= MAX_RATCHET_COUNTER:
        raise InvalidInputError(
            f"Ratchet counter must be between 0 and {MAX_RATCHET_COUNTER}"
        )
    return counter


def ratchet_salt(counter: int) -> bytes:
    """Build the HKDF salt for a ratchet counter.

    Args:
        counter: The ratchet counter (unsigned 64-bit).

    Returns:
        Salt bytes, e.g. ``b"ratchet-7"``.
    """
    return RATCHET_SALT_PREFIX + str(check_counter(counter)).encode("ascii")


def derive_message_key(shared_secret: bytes, counter: int) -> bytes:
    """Derive the symmetric key for the message at ``counter``.

    Args:
        shared_secret: The ECDH shared secret (32 bytes).
        counter: The ratchet counter of the message.

    Returns:
        32-byte AES-256-GCM key.

    Raises:
        InvalidInputError: If the secret length or counter is invalid.
    """
    if len(shared_secret) != SHARED_SECRET_SIZE:
        raise InvalidInputError(
            f"Shared secret must be {SHARED_SECRET_SIZE} bytes, got {len(shared_secret)}"
        )

    hkdf = HKDF(
        algorithm=SHA256(),
        length=KEY_SIZE,
        salt=ratchet_salt(counter),
        info=RATCHET_INFO,
    )
    return hkdf.derive(bytes(shared_secret))
