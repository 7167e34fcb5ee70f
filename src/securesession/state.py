"""Per-endpoint session state: key pair, shared secret and send counter."""

import hmac
import logging
import threading
from typing import Optional, Union

from cryptography.hazmat.primitives.asymmetric import ec

from .keys import KeyPair, derive_shared_secret, generate_keypair
from .ratchet import derive_message_key
from .replay import ReplayWindow
from .types import (
    HandshakeError,
    InvalidKeyError,
    NotReadyError,
    ReplayError,
    SessionStatus,
)

logger = logging.getLogger(__name__)


class SessionState:
    """
    State owned by one endpoint of a session.

    The shared secret is written once when the handshake completes and is
    read-only afterwards. The send counter is advanced under a lock so that
    concurrent senders never draw the same counter.
    """

    def __init__(self, endpoint_id: str, replay_window: Optional[int] = None) -> None:
        """
        Initialize an endpoint's state.

        Args:
            endpoint_id: Identifier of the owning endpoint.
            replay_window: Enables replay detection on receive with this window size.
        """
        self.endpoint_id = endpoint_id
        self._lock = threading.Lock()
        self._status = SessionStatus.UNINITIALIZED
        self._keypair: Optional[KeyPair] = None
        self._shared_secret: Optional[bytearray] = None
        self._send_counter = 0
        self._replay = ReplayWindow(window=replay_window) if replay_window is not None else None

    def __repr__(self) -> str:
        return (
            f"SessionState(endpoint_id={self.endpoint_id!r}, status={self._status.value}, "
            f"send_counter={self._send_counter})"
        )

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def send_counter(self) -> int:
        """The counter the next sent message will carry."""
        return self._send_counter

    @property
    def public_key(self) -> ec.EllipticCurvePublicKey:
        """This endpoint's public key, for handing to the peer."""
        if self._keypair is None:
            raise NotReadyError(f"{self.endpoint_id} has no key pair")
        return self._keypair.public_key

    def generate_keys(self) -> None:
        """Generate this endpoint's key pair."""
        with self._lock:
            if self._status is not SessionStatus.UNINITIALIZED:
                raise HandshakeError(
                    f"{self.endpoint_id} cannot generate keys in state {self._status.value}"
                )
            self._keypair = generate_keypair()
            self._status = SessionStatus.KEYS_GENERATED
        logger.info("Generated key pair for %s", self.endpoint_id)

    def complete_handshake(
        self,
        peer_public: Union[ec.EllipticCurvePublicKey, bytes],
    ) -> None:
        """
        Derive and store the shared secret from our private key and the peer's public key.

        Raises:
            NotReadyError: If keys have not been generated
            HandshakeError: If the peer key is invalid
        """
        with self._lock:
            if self._status is not SessionStatus.KEYS_GENERATED:
                raise NotReadyError(
                    f"{self.endpoint_id} cannot complete handshake in state {self._status.value}"
                )
            try:
                secret = derive_shared_secret(self._keypair.private_key, peer_public)
            except InvalidKeyError as e:
                raise HandshakeError(f"Key agreement failed for {self.endpoint_id}: {e}") from e
            self._shared_secret = bytearray(secret)
            self._status = SessionStatus.HANDSHAKE_COMPLETE
        logger.info("Handshake complete for %s", self.endpoint_id)

    def shares_secret_with(self, other: "SessionState") -> bool:
        """Constant-time check that both endpoints agreed on the same secret."""
        if self._shared_secret is None or other._shared_secret is None:
            return False
        return hmac.compare_digest(bytes(self._shared_secret), bytes(other._shared_secret))

    def next_send_counter(self) -> int:
        """Return the counter for the next outgoing message and advance it."""
        with self._lock:
            self._require_handshake()
            counter = self._send_counter
            self._send_counter += 1
            return counter

    def message_key(self, counter: int) -> bytes:
        """Derive the message key for ``counter`` from this endpoint's secret."""
        with self._lock:
            self._require_handshake()
            secret = bytes(self._shared_secret)
        return derive_message_key(secret, counter)

    def check_replay(self, sender_id: str, counter: int) -> None:
        """Reject a counter already seen from the peer. No-op without replay protection."""
        if self._replay is None:
            return
        with self._lock:
            if not self._replay.is_acceptable(counter):
                raise ReplayError(sender_id, counter)

    def record_receive(self, sender_id: str, counter: int) -> None:
        """Atomically re-check and record an authenticated counter from the peer."""
        if self._replay is None:
            return
        with self._lock:
            if not self._replay.is_acceptable(counter):
                raise ReplayError(sender_id, counter)
            self._replay.record(counter)

    def close(self) -> None:
        """Zero the shared secret and drop the key pair."""
        with self._lock:
            if self._status is SessionStatus.CLOSED:
                return
            if self._shared_secret is not None:
                for i in range(len(self._shared_secret)):
                    self._shared_secret[i] = 0
            self._shared_secret = None
            self._keypair = None
            self._status = SessionStatus.CLOSED
        logger.info("Closed session state for %s", self.endpoint_id)

    def _require_handshake(self) -> None:
        if self._status is not SessionStatus.HANDSHAKE_COMPLETE:
            raise NotReadyError(
                f"{self.endpoint_id} is not ready (state {self._status.value})"
            )
