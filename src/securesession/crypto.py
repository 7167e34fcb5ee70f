"""Authenticated encryption of message payloads with AES-256-GCM."""

import os
from typing import Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .types import (
    AuthenticationError,
    InvalidInputError,
    KEY_SIZE,
    NONCE_SIZE,
    TAG_SIZE,
)


def _cipher(key: bytes) -> AESGCM:
    if len(key) != KEY_SIZE:
        raise InvalidInputError(f"Key must be {KEY_SIZE} bytes, got {len(key)}")
    return AESGCM(bytes(key))


def encrypt(plaintext: bytes, key: bytes) -> Tuple[bytes, bytes]:
    """
    Encrypt a payload under a derived message key.

    A fresh random nonce is drawn for every call.

    Args:
        plaintext: Payload to encrypt
        key: 32-byte derived message key

    Returns:
        Tuple of (ciphertext with appended 16-byte tag, 12-byte nonce)
    """
    cipher = _cipher(key)
    nonce = os.urandom(NONCE_SIZE)
    ciphertext = cipher.encrypt(nonce, bytes(plaintext), None)
    return ciphertext, nonce


def decrypt(ciphertext: bytes, nonce: bytes, key: bytes) -> bytes:
    """
    Verify and decrypt a payload.

    Args:
        ciphertext: Ciphertext with appended tag
        nonce: The 12-byte nonce used at encryption
        key: 32-byte derived message key

    Returns:
        The plaintext

    Raises:
        InvalidInputError: If the ciphertext is shorter than the tag or the nonce is the wrong size
        AuthenticationError: If the tag does not verify
    """
    if len(ciphertext) < TAG_SIZE:
        raise InvalidInputError(
            f"Ciphertext too short: {len(ciphertext)} bytes (minimum {TAG_SIZE})"
        )
    if len(nonce) != NONCE_SIZE:
        raise InvalidInputError(f"Nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")

    cipher = _cipher(key)
    try:
        return cipher.decrypt(bytes(nonce), bytes(ciphertext), None)
    except InvalidTag as e:
        raise AuthenticationError("Message authentication failed") from e
