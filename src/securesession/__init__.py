"""
securesession - Two-party secure messaging sessions

ECDH (P-256) key agreement, an HKDF-SHA256 per-message ratchet and
AES-256-GCM authenticated encryption.
"""

from .keys import (
    KeyPair,
    generate_keypair,
    derive_shared_secret,
    public_key_to_bytes,
    public_key_from_bytes,
)
from .ratchet import derive_message_key, check_counter
from .crypto import encrypt, decrypt
from .envelope import EncryptedEnvelope, encode_envelope, decode_envelope, is_envelope
from .replay import ReplayWindow
from .state import SessionState
from .session import Session
from .config import SessionConfig
from .logging_utils import configure_logging
from .types import (
    ReceivedMessage,
    SessionStatus,
    ENVELOPE_VERSION,
    NONCE_SIZE,
    TAG_SIZE,
    KEY_SIZE,
    SHARED_SECRET_SIZE,
    PUBLIC_KEY_SIZE,
    MAX_RATCHET_COUNTER,
    SessionError,
    GenerationError,
    InvalidKeyError,
    HandshakeError,
    NotReadyError,
    AuthenticationError,
    InvalidInputError,
    ReplayError,
)

__version__ = "0.1.0"

__all__ = [
    # Keys
    "KeyPair",
    "generate_keypair",
    "derive_shared_secret",
    "public_key_to_bytes",
    "public_key_from_bytes",
    # Ratchet
    "derive_message_key",
    "check_counter",
    # Crypto
    "encrypt",
    "decrypt",
    # Envelope
    "EncryptedEnvelope",
    "encode_envelope",
    "decode_envelope",
    "is_envelope",
    # Session
    "ReplayWindow",
    "SessionState",
    "Session",
    "SessionConfig",
    # Logging
    "configure_logging",
    # Types
    "ReceivedMessage",
    "SessionStatus",
    # Constants
    "ENVELOPE_VERSION",
    "NONCE_SIZE",
    "TAG_SIZE",
    "KEY_SIZE",
    "SHARED_SECRET_SIZE",
    "PUBLIC_KEY_SIZE",
    "MAX_RATCHET_COUNTER",
    # Errors
    "SessionError",
    "GenerationError",
    "InvalidKeyError",
    "HandshakeError",
    "NotReadyError",
    "AuthenticationError",
    "InvalidInputError",
    "ReplayError",
]
