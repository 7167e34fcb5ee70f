"""
Two-party secure session.

The Session composes key agreement, the message-key ratchet and AES-GCM into
an establish / send / receive API. ``send`` returns an EncryptedEnvelope and
``receive`` consumes one; the two sides need not run in the same call frame,
so any transport can sit between them.

Example usage:
    ```python
    session = Session()
    session.establish()

    envelope = session.send("alice", "hello")
    message = session.receive(envelope)
    print(message.text, message.ratchet_counter)
    ```
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional, Union

from .config import SessionConfig
from .crypto import decrypt, encrypt
from .envelope import EncryptedEnvelope
from .logging_utils import PACKAGE_LOGGER
from .ratchet import check_counter
from .state import SessionState
from .types import (
    AuthenticationError,
    HandshakeError,
    InvalidInputError,
    NotReadyError,
    ReceivedMessage,
    ReplayError,
    SessionStatus,
)

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINTS = ("alice", "bob")


class Session:
    """A secure channel between exactly two endpoints."""

    def __init__(
        self,
        endpoint_ids: Iterable[str] = DEFAULT_ENDPOINTS,
        config: Optional[SessionConfig] = None,
    ) -> None:
        """
        Create a session with one SessionState per endpoint.

        Args:
            endpoint_ids: The two endpoint identifiers.
            config: Session settings (default: SessionConfig()).
        """
        ids = tuple(endpoint_ids)
        if len(ids) != 2 or ids[0] == ids[1]:
            raise ValueError(f"A session needs exactly two distinct endpoints, got {ids!r}")

        self.config = config or SessionConfig()
        logging.getLogger(PACKAGE_LOGGER).setLevel(self.config.log_level)
        window = self.config.replay_window if self.config.replay_protection else None
        self._states: Dict[str, SessionState] = {
            endpoint_id: SessionState(endpoint_id, replay_window=window) for endpoint_id in ids
        }
        self._handshake_complete = False
        self._closed = False
        self._lock = threading.Lock()

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def endpoint_ids(self) -> tuple:
        return tuple(self._states)

    @property
    def handshake_complete(self) -> bool:
        return self._handshake_complete

    @property
    def status(self) -> SessionStatus:
        """Overall status derived from both endpoint states."""
        if self._closed:
            return SessionStatus.CLOSED
        if self._handshake_complete:
            return SessionStatus.HANDSHAKE_COMPLETE
        if all(s.status is SessionStatus.KEYS_GENERATED for s in self._states.values()):
            return SessionStatus.KEYS_GENERATED
        return SessionStatus.UNINITIALIZED

    def state(self, endpoint_id: str) -> SessionState:
        """Return the state of an endpoint."""
        try:
            return self._states[endpoint_id]
        except KeyError:
            raise InvalidInputError(f"Unknown endpoint: {endpoint_id!r}") from None

    def peer_of(self, endpoint_id: str) -> str:
        """Return the id of the other endpoint."""
        self.state(endpoint_id)
        return next(e for e in self._states if e != endpoint_id)

    def counter(self, endpoint_id: str) -> int:
        """The ratchet counter the endpoint's next message will carry."""
        return self.state(endpoint_id).send_counter

    def generate_keys(self) -> None:
        """
        Generate key pairs for both endpoints.

        A GenerationError is fatal to the session: an endpoint that already
        generated keys keeps them, so retrying fails with HandshakeError.
        Build a new Session instead.
        """
        for state in self._states.values():
            state.generate_keys()

    def exchange_keys(self) -> None:
        """
        Run key agreement on both endpoints and mark the handshake complete.

        Raises:
            NotReadyError: If either endpoint has no key pair
            HandshakeError: If agreement fails, the secrets differ, or the
                handshake already completed
        """
        with self._lock:
            if self._handshake_complete:
                raise HandshakeError("Handshake already complete")
            if self._closed:
                raise NotReadyError("Session is closed")

            for endpoint_id, state in self._states.items():
                if state.status is not SessionStatus.KEYS_GENERATED:
                    raise NotReadyError(
                        f"{endpoint_id} must generate keys before exchange "
                        f"(state {state.status.value})"
                    )

            first, second = self._states.values()
            first.complete_handshake(second.public_key)
            second.complete_handshake(first.public_key)

            if not first.shares_secret_with(second):
                raise HandshakeError("Endpoints derived different shared secrets")

            self._handshake_complete = True
        logger.info("Secure channel established between %s and %s", *self._states)

    def establish(self) -> None:
        """Generate keys for both endpoints and exchange them."""
        self.generate_keys()
        self.exchange_keys()

    def send(self, sender_id: str, plaintext: Union[str, bytes]) -> EncryptedEnvelope:
        """
        Encrypt a message from ``sender_id`` under its current ratchet key.

        Args:
            sender_id: The sending endpoint.
            plaintext: Message text (UTF-8 encoded) or raw bytes.

        Returns:
            EncryptedEnvelope carrying the counter used.

        Raises:
            NotReadyError: If the handshake has not completed
            InvalidInputError: If the sender is unknown or the payload too large
        """
        self._require_ready()
        state = self.state(sender_id)

        data = plaintext.encode("utf-8") if isinstance(plaintext, str) else bytes(plaintext)
        if len(data) > self.config.max_payload_size:
            raise InvalidInputError(
                f"Message too large: {len(data)} bytes (max {self.config.max_payload_size})"
            )

        counter = state.next_send_counter()
        ciphertext, nonce = encrypt(data, state.message_key(counter))

        envelope = EncryptedEnvelope(
            ciphertext=ciphertext,
            nonce=nonce,
            ratchet_counter=counter,
            sender_id=sender_id,
            timestamp=datetime.now(timezone.utc),
        )
        logger.debug("%s sent message with ratchet counter %d", sender_id, counter)
        return envelope

    def receive(self, envelope: EncryptedEnvelope) -> ReceivedMessage:
        """
        Decrypt an envelope on behalf of the endpoint that did not send it.

        The key is derived from the counter carried in the envelope; the
        receiver's own send counter is not consulted.

        Raises:
            NotReadyError: If the handshake has not completed
            InvalidInputError: If the envelope is malformed
            ReplayError: If replay protection is on and the counter was seen
            AuthenticationError: If the envelope fails authentication
        """
        self._require_ready()
        sender_id = envelope.sender_id
        receiver = self.state(self.peer_of(sender_id))
        counter = check_counter(envelope.ratchet_counter)

        try:
            receiver.check_replay(sender_id, counter)
            key = receiver.message_key(counter)
            plaintext = decrypt(envelope.ciphertext, envelope.nonce, key)
            receiver.record_receive(sender_id, counter)
        except (AuthenticationError, ReplayError) as e:
            logger.warning(
                "Rejected message from %s with ratchet counter %r: %s", sender_id, counter, e
            )
            raise

        logger.debug("%s received message with ratchet counter %d", receiver.endpoint_id, counter)
        return ReceivedMessage(
            plaintext=plaintext,
            sender_id=sender_id,
            ratchet_counter=counter,
            timestamp=envelope.timestamp,
        )

    def close(self) -> None:
        """Zero both endpoints' secrets. Further sends fail with NotReadyError."""
        with self._lock:
            if self._closed:
                return
            for state in self._states.values():
                state.close()
            self._closed = True
        logger.info("Session closed")

    def _require_ready(self) -> None:
        if self._closed:
            raise NotReadyError("Session is closed")
        if not self._handshake_complete:
            raise NotReadyError("Handshake has not completed")
