"""Tests for per-message key derivation."""

import hashlib
import hmac

import pytest

from securesession.ratchet import derive_message_key, ratchet_salt
from securesession.types import InvalidInputError, MAX_RATCHET_COUNTER
from .test_vectors import RATCHET_INFO, SHARED_SECRET_HEX


SHARED_SECRET = bytes.fromhex(SHARED_SECRET_HEX)


def _rfc5869_sha256(ikm: bytes, salt: bytes, info: bytes) -> bytes:
    """Single-block HKDF-SHA256 computed directly from HMAC."""
    prk = hmac.new(salt, ikm, hashlib.sha256).digest()
    return hmac.new(prk, info + b"\x01", hashlib.sha256).digest()


class TestRatchetSalt:
    """Test ratchet salt construction."""

    def test_decimal_counter(self) -> None:
        """Salt is the prefix followed by the decimal counter."""
        assert ratchet_salt(0) == b"ratchet-0"
        assert ratchet_salt(42) == b"ratchet-42"
        assert ratchet_salt(1000000) == b"ratchet-1000000"

    def test_negative_counter(self) -> None:
        """Negative counters are rejected."""
        with pytest.raises(InvalidInputError, match="between 0"):
            ratchet_salt(-1)

    def test_upper_bound(self) -> None:
        """Counters are unsigned 64-bit; anything larger is rejected."""
        assert ratchet_salt(MAX_RATCHET_COUNTER) == b"ratchet-18446744073709551615"

        with pytest.raises(InvalidInputError, match="between 0"):
            ratchet_salt(MAX_RATCHET_COUNTER + 1)

    def test_huge_counter(self) -> None:
        """A counter too long to format is rejected without converting it."""
        with pytest.raises(InvalidInputError):
            ratchet_salt(10 ** 5000)
        with pytest.raises(InvalidInputError):
            ratchet_salt(-(10 ** 5000))

    def test_non_integer_counter(self) -> None:
        """Non-integer counters are rejected."""
        with pytest.raises(InvalidInputError):
            ratchet_salt("1")
        with pytest.raises(InvalidInputError):
            ratchet_salt(True)


class TestDeriveMessageKey:
    """Test HKDF message key derivation."""

    def test_matches_rfc5869(self) -> None:
        """Derived key equals HKDF-SHA256 with the ratchet salt and app info."""
        for counter in (0, 1, 7, 255, 4096):
            expected = _rfc5869_sha256(SHARED_SECRET, b"ratchet-%d" % counter, RATCHET_INFO)
            assert derive_message_key(SHARED_SECRET, counter) == expected

    def test_key_length(self) -> None:
        """Derived keys are 32 bytes."""
        assert len(derive_message_key(SHARED_SECRET, 0)) == 32

    def test_deterministic(self) -> None:
        """Same secret and counter always give the same key."""
        for counter in range(50):
            assert derive_message_key(SHARED_SECRET, counter) == derive_message_key(
                SHARED_SECRET, counter
            )

    def test_divergence(self) -> None:
        """Adjacent counters give different keys, and no key repeats over a sample."""
        keys = [derive_message_key(SHARED_SECRET, c) for c in range(500)]

        for current, following in zip(keys, keys[1:]):
            assert current != following
        assert len(set(keys)) == len(keys)

    def test_different_secrets(self) -> None:
        """Different secrets give different keys at the same counter."""
        other = bytes([0xAA] * 32)
        assert derive_message_key(SHARED_SECRET, 3) != derive_message_key(other, 3)

    def test_accepts_bytearray(self) -> None:
        """A mutable secret buffer derives the same key."""
        assert derive_message_key(bytearray(SHARED_SECRET), 5) == derive_message_key(
            SHARED_SECRET, 5
        )

    def test_invalid_secret_length(self) -> None:
        """Secrets that are not 32 bytes are rejected."""
        with pytest.raises(InvalidInputError, match="32 bytes"):
            derive_message_key(b"short", 0)
