"""Encrypted envelope and its default JSON wire codec."""

import base64
import binascii
import json
from dataclasses import dataclass
from datetime import datetime

from .ratchet import check_counter
from .types import (
    ENVELOPE_VERSION,
    InvalidInputError,
    NONCE_SIZE,
    TAG_SIZE,
)


@dataclass(frozen=True)
class EncryptedEnvelope:
    """
    A message in transit between endpoints.

    Wire format (UTF-8 JSON object):
        v               envelope version (1)
        ciphertext      base64url, ciphertext + 16-byte tag
        nonce           base64url, 12 bytes
        ratchetCounter  sender's ratchet counter for this message
        senderId        sending endpoint id
        timestamp       ISO-8601 send time
    """
    ciphertext: bytes
    nonce: bytes  # 12 bytes
    ratchet_counter: int
    sender_id: str
    timestamp: datetime


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64decode(value: str, field: str) -> bytes:
    if not isinstance(value, str):
        raise InvalidInputError(f"Field {field} must be a string")
    padding = 4 - len(value) % 4
    if padding != 4:
        value += "=" * padding
    try:
        return base64.b64decode(value, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInputError(f"Field {field} is not valid base64: {e}") from e


def _parse_timestamp(value: str) -> datetime:
    if not isinstance(value, str):
        raise InvalidInputError(f"Invalid timestamp: {value!r}")
    # fromisoformat only accepts a "Z" suffix from Python 3.11
    if value[-1:] in ("Z", "z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise InvalidInputError(f"Invalid timestamp: {value!r}") from e


def encode_envelope(envelope: EncryptedEnvelope) -> bytes:
    """
    Encode an envelope to bytes.

    Args:
        envelope: EncryptedEnvelope to encode

    Returns:
        Encoded bytes
    """
    payload = {
        "v": ENVELOPE_VERSION,
        "ciphertext": _b64encode(envelope.ciphertext),
        "nonce": _b64encode(envelope.nonce),
        "ratchetCounter": envelope.ratchet_counter,
        "senderId": envelope.sender_id,
        "timestamp": envelope.timestamp.isoformat(),
    }
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


def decode_envelope(data: bytes) -> EncryptedEnvelope:
    """
    Decode bytes into an envelope.

    Args:
        data: Encoded envelope bytes

    Returns:
        Decoded EncryptedEnvelope

    Raises:
        InvalidInputError: If data is invalid
    """
    try:
        payload = json.loads(data.decode("utf-8"))
    except ValueError as e:  # JSONDecodeError, UnicodeDecodeError, int digit limit
        raise InvalidInputError(f"Envelope is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise InvalidInputError("Envelope must be a JSON object")

    missing = [k for k in ("v", "ciphertext", "nonce", "ratchetCounter", "senderId", "timestamp")
               if k not in payload]
    if missing:
        raise InvalidInputError(f"Envelope missing fields: {', '.join(missing)}")

    if payload["v"] != ENVELOPE_VERSION:
        raise InvalidInputError(f"Unknown version: {payload['v']}")

    ciphertext = _b64decode(payload["ciphertext"], "ciphertext")
    if len(ciphertext) < TAG_SIZE:
        raise InvalidInputError(
            f"Ciphertext too short: {len(ciphertext)} bytes (minimum {TAG_SIZE})"
        )

    nonce = _b64decode(payload["nonce"], "nonce")
    if len(nonce) != NONCE_SIZE:
        raise InvalidInputError(f"Nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")

    counter = check_counter(payload["ratchetCounter"])

    sender_id = payload["senderId"]
    if not isinstance(sender_id, str) or not sender_id:
        raise InvalidInputError("Field senderId must be a non-empty string")

    timestamp = _parse_timestamp(payload["timestamp"])

    return EncryptedEnvelope(
        ciphertext=ciphertext,
        nonce=nonce,
        ratchet_counter=counter,
        sender_id=sender_id,
        timestamp=timestamp,
    )


def is_envelope(data: bytes) -> bool:
    """
    Check if data decodes as a valid envelope.

    Args:
        data: Bytes to check

    Returns:
        True if data is a well-formed envelope
    """
    try:
        decode_envelope(data)
    except InvalidInputError:
        return False
    return True
