"""Tests for key generation and ECDH key agreement."""

import pytest
from cryptography.hazmat.primitives.asymmetric import ec

from securesession import keys as keys_module
from securesession.keys import (
    KeyPair,
    derive_shared_secret,
    generate_keypair,
    public_key_from_bytes,
    public_key_to_bytes,
)
from securesession.types import GenerationError, InvalidKeyError, PUBLIC_KEY_SIZE
from .test_vectors import (
    ALICE_PUBLIC_KEY_HEX,
    ALICE_SCALAR,
    BOB_SCALAR,
    SHARED_SECRET_HEX,
)


def _keypair_from_scalar(scalar: int) -> KeyPair:
    private_key = ec.derive_private_key(scalar, ec.SECP256R1())
    return KeyPair(private_key=private_key, public_key=private_key.public_key())


class TestKeyGeneration:
    """Test P-256 key pair generation."""

    def test_generates_p256_keypair(self) -> None:
        """Generated keys are on P-256 and the halves match."""
        pair = generate_keypair()

        assert isinstance(pair.public_key.curve, ec.SECP256R1)
        assert public_key_to_bytes(pair.public_key) == public_key_to_bytes(
            pair.private_key.public_key()
        )

    def test_fresh_keys_each_call(self) -> None:
        """Two generations produce different key pairs."""
        a = generate_keypair()
        b = generate_keypair()
        assert public_key_to_bytes(a.public_key) != public_key_to_bytes(b.public_key)

    def test_repr_hides_private_key(self) -> None:
        """KeyPair repr shows only a public key prefix."""
        pair = generate_keypair()
        assert "private" not in repr(pair)

    def test_random_source_failure(self, monkeypatch) -> None:
        """Failure of the generator surfaces as GenerationError."""
        def broken(curve):
            raise OSError("entropy source unavailable")

        monkeypatch.setattr(keys_module.ec, "generate_private_key", broken)

        with pytest.raises(GenerationError, match="entropy"):
            generate_keypair()


class TestSharedSecret:
    """Test ECDH shared-secret derivation."""

    def test_known_answer(self) -> None:
        """ECDH of scalars 1 and 2 yields the x-coordinate of 2G."""
        alice = _keypair_from_scalar(ALICE_SCALAR)
        bob = _keypair_from_scalar(BOB_SCALAR)

        assert public_key_to_bytes(alice.public_key).hex() == ALICE_PUBLIC_KEY_HEX
        assert derive_shared_secret(alice.private_key, bob.public_key).hex() == SHARED_SECRET_HEX

    def test_handshake_symmetry(self) -> None:
        """Both sides compute the same 32-byte secret."""
        for _ in range(20):
            alice = generate_keypair()
            bob = generate_keypair()

            alice_secret = derive_shared_secret(alice.private_key, bob.public_key)
            bob_secret = derive_shared_secret(bob.private_key, alice.public_key)

            assert alice_secret == bob_secret
            assert len(alice_secret) == 32

    def test_accepts_encoded_public_key(self) -> None:
        """Peer key may be given as its encoded point."""
        alice = generate_keypair()
        bob = generate_keypair()

        from_bytes = derive_shared_secret(alice.private_key, public_key_to_bytes(bob.public_key))
        from_object = derive_shared_secret(alice.private_key, bob.public_key)

        assert from_bytes == from_object

    def test_different_peers_different_secrets(self) -> None:
        """Secrets with different peers differ."""
        alice = generate_keypair()
        bob = generate_keypair()
        carol = generate_keypair()

        assert derive_shared_secret(alice.private_key, bob.public_key) != derive_shared_secret(
            alice.private_key, carol.public_key
        )

    def test_rejects_off_curve_point(self) -> None:
        """A point not on P-256 is rejected."""
        encoded = bytearray(public_key_to_bytes(generate_keypair().public_key))
        encoded[-1] ^= 0x01  # y no longer satisfies the curve equation

        with pytest.raises(InvalidKeyError):
            derive_shared_secret(generate_keypair().private_key, bytes(encoded))

    def test_rejects_wrong_curve(self) -> None:
        """A key on another curve is rejected."""
        other = ec.generate_private_key(ec.SECP384R1()).public_key()

        with pytest.raises(InvalidKeyError, match="secp384r1"):
            derive_shared_secret(generate_keypair().private_key, other)

    def test_rejects_unsupported_type(self) -> None:
        """Non-key objects are rejected."""
        with pytest.raises(InvalidKeyError):
            derive_shared_secret(generate_keypair().private_key, "not a key")


class TestPublicKeyEncoding:
    """Test public key wire encoding."""

    def test_uncompressed_point(self) -> None:
        """Encoded key is a 65-byte uncompressed point."""
        encoded = public_key_to_bytes(generate_keypair().public_key)

        assert len(encoded) == PUBLIC_KEY_SIZE
        assert encoded[0] == 0x04

    def test_round_trip(self) -> None:
        """Encoded key loads back to the same key."""
        public_key = generate_keypair().public_key
        loaded = public_key_from_bytes(public_key_to_bytes(public_key))

        assert public_key_to_bytes(loaded) == public_key_to_bytes(public_key)

    def test_invalid_length(self) -> None:
        """Reject encodings of the wrong length."""
        with pytest.raises(InvalidKeyError, match="65 bytes"):
            public_key_from_bytes(b"too short")

    def test_all_zero_point(self) -> None:
        """Reject a zero-filled encoding."""
        with pytest.raises(InvalidKeyError):
            public_key_from_bytes(bytes(PUBLIC_KEY_SIZE))
