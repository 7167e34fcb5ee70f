"""Type definitions and protocol constants for securesession."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


# Protocol constants
ENVELOPE_VERSION = 1
NONCE_SIZE = 12
TAG_SIZE = 16
KEY_SIZE = 32
SHARED_SECRET_SIZE = 32
MAX_RATCHET_COUNTER = 2**64 - 1  # unsigned 64-bit
PUBLIC_KEY_SIZE = 65  # uncompressed SEC1 point on P-256

# Key derivation constants
RATCHET_SALT_PREFIX = b"ratchet-"
RATCHET_INFO = b"secure-messaging-app"


class SessionStatus(Enum):
    """Lifecycle of an endpoint's session state."""
    UNINITIALIZED = "uninitialized"
    KEYS_GENERATED = "keys_generated"
    HANDSHAKE_COMPLETE = "handshake_complete"
    CLOSED = "closed"


@dataclass(frozen=True)
class ReceivedMessage:
    """Decrypted message handed to the display layer."""
    plaintext: bytes
    sender_id: str
    ratchet_counter: int
    timestamp: datetime

    @property
    def text(self) -> str:
        """The plaintext decoded as UTF-8."""
        return self.plaintext.decode("utf-8")


# Exception types
class SessionError(Exception):
    """Base exception for securesession errors."""
    pass


class GenerationError(SessionError):
    """Key pair generation failed."""
    pass


class InvalidKeyError(SessionError):
    """Peer public key is malformed or not on the configured curve."""
    pass


class HandshakeError(SessionError):
    """Shared-secret agreement failed."""
    pass


class NotReadyError(SessionError):
    """Operation attempted before the handshake completed."""
    pass


class AuthenticationError(SessionError):
    """AEAD tag verification failed."""
    pass


class InvalidInputError(SessionError):
    """Malformed envelope, ciphertext or argument."""
    pass


class ReplayError(InvalidInputError):
    """Envelope counter was already seen or fell outside the replay window."""

    def __init__(self, sender_id: str, counter: int) -> None:
        self.sender_id = sender_id
        self.counter = counter
        super().__init__(f"Rejected replayed counter {counter} from {sender_id}")
