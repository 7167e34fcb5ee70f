"""Key pair generation and ECDH key agreement on NIST P-256."""

from dataclasses import dataclass
from typing import Union

from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from .types import (
    GenerationError,
    InvalidKeyError,
    PUBLIC_KEY_SIZE,
)


CURVE = ec.SECP256R1


@dataclass(frozen=True)
class KeyPair:
    """An endpoint's ECDH key pair. Only the public half ever leaves the endpoint."""
    private_key: ec.EllipticCurvePrivateKey
    public_key: ec.EllipticCurvePublicKey

    def __repr__(self) -> str:
        return f"KeyPair(public_key={public_key_to_bytes(self.public_key).hex()[:16]}...)"


def generate_keypair() -> KeyPair:
    """
    Generate a fresh P-256 key pair from the OS random source.

    Returns:
        KeyPair

    Raises:
        GenerationError: If the underlying generator fails
    """
    try:
        private_key = ec.generate_private_key(CURVE())
    except Exception as e:
        raise GenerationError(f"Key generation failed: {e}") from e
    return KeyPair(private_key=private_key, public_key=private_key.public_key())


def derive_shared_secret(
    local_private: ec.EllipticCurvePrivateKey,
    peer_public: Union[ec.EllipticCurvePublicKey, bytes],
) -> bytes:
    """
    Perform ECDH between our private key and the peer's public key.

    Args:
        local_private: Our P-256 private key
        peer_public: Their public key, as a key object or its encoded point

    Returns:
        32-byte shared secret

    Raises:
        InvalidKeyError: If the peer key is not a valid P-256 point
    """
    if isinstance(peer_public, (bytes, bytearray, memoryview)):
        peer_public = public_key_from_bytes(bytes(peer_public))
    elif not isinstance(peer_public, ec.EllipticCurvePublicKey):
        raise InvalidKeyError(f"Unsupported public key type: {type(peer_public).__name__}")

    if not isinstance(peer_public.curve, CURVE):
        raise InvalidKeyError(f"Peer key is on {peer_public.curve.name}, expected {CURVE.name}")

    try:
        return local_private.exchange(ec.ECDH(), peer_public)
    except ValueError as e:
        raise InvalidKeyError(f"ECDH failed: {e}") from e


def public_key_to_bytes(public_key: ec.EllipticCurvePublicKey) -> bytes:
    """Convert a public key to its uncompressed point encoding."""
    return public_key.public_bytes(Encoding.X962, PublicFormat.UncompressedPoint)


def public_key_from_bytes(data: bytes) -> ec.EllipticCurvePublicKey:
    """Load and validate a P-256 public key from its point encoding."""
    if len(data) != PUBLIC_KEY_SIZE:
        raise InvalidKeyError(f"Public key must be {PUBLIC_KEY_SIZE} bytes, got {len(data)}")
    try:
        return ec.EllipticCurvePublicKey.from_encoded_point(CURVE(), data)
    except ValueError as e:
        raise InvalidKeyError(f"Invalid public key: {e}") from e
