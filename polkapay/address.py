"""SS58 address codec.

An SS58 address is ``base58(prefix ++ public_key ++ checksum)`` where the
checksum is the first two bytes of ``blake2b-512(b"SS58PRE" ++ prefix ++
public_key)``. The prefix (the "format") identifies the network; the same
public key renders differently on Polkadot (0), Kusama (2) and generic
Substrate (42), so accounts are compared on decoded bytes, never on strings.

Every public helper except ``decode_address`` fails closed: malformed input
yields ``False`` or ``None``, never an exception.
"""

from __future__ import annotations

import hashlib
import re
from typing import Optional

import base58

from .errors import ValidationError

SS58_CHECKSUM_PREFIX = b"SS58PRE"
CHECKSUM_LENGTH = 2
# sr25519/ed25519 public keys, compressed ECDSA public keys
PUBLIC_KEY_LENGTHS = (32, 33)
MAX_SS58_FORMAT = 16383

_BASE58_RE = re.compile(r"[1-9A-HJ-NP-Za-km-z]+")
_HEX_KEY_RE = re.compile(r"0x(?:[0-9a-fA-F]{64}|[0-9a-fA-F]{66})")


def _checksum(payload: bytes) -> bytes:
    return hashlib.blake2b(SS58_CHECKSUM_PREFIX + payload, digest_size=64).digest()[
        :CHECKSUM_LENGTH
    ]


def _encode_prefix(ss58_format: int) -> bytes:
    if ss58_format < 64:
        return bytes([ss58_format])
    first = ((ss58_format & 0b0000_0000_1111_1100) >> 2) | 0b0100_0000
    second = (ss58_format >> 8) | ((ss58_format & 0b0000_0000_0000_0011) << 6)
    return bytes([first, second])


def _decode_prefix(data: bytes) -> tuple[int, int]:
    """Return (ss58_format, prefix_length) for a raw SS58 payload."""
    if data[0] & 0b1000_0000:
        raise ValidationError("Reserved SS58 prefix")
    if data[0] & 0b0100_0000:
        if len(data) < 2:
            raise ValidationError("Truncated SS58 prefix")
        ss58_format = (
            ((data[0] & 0b0011_1111) << 2)
            | (data[1] >> 6)
            | ((data[1] & 0b0011_1111) << 8)
        )
        return ss58_format, 2
    return data[0], 1


def encode_address(public_key: bytes, ss58_format: int = 0) -> str:
    """Encode a public key as an SS58 address under *ss58_format*."""
    if len(public_key) not in PUBLIC_KEY_LENGTHS:
        raise ValidationError(f"Invalid public key length: {len(public_key)}")
    if not 0 <= ss58_format <= MAX_SS58_FORMAT or ss58_format in (46, 47):
        raise ValidationError(f"Invalid SS58 format: {ss58_format}")
    payload = _encode_prefix(ss58_format) + public_key
    return base58.b58encode(payload + _checksum(payload)).decode("ascii")


def decode_address(address: str) -> tuple[bytes, Optional[int]]:
    """Decode an address into ``(public_key, ss58_format)``.

    Also accepts a ``0x``-prefixed hex public key, as reported by indexers;
    its format is ``None``.

    Raises:
        ValidationError: on any malformed input.
    """
    if not isinstance(address, str) or not address:
        raise ValidationError("Address must be a non-empty string")

    if _HEX_KEY_RE.fullmatch(address):
        return bytes.fromhex(address[2:]), None

    if not _BASE58_RE.fullmatch(address):
        raise ValidationError("Address contains non-base58 characters")

    data = base58.b58decode(address)
    if len(data) < 1 + PUBLIC_KEY_LENGTHS[0] + CHECKSUM_LENGTH:
        raise ValidationError(f"Invalid decoded address length: {len(data)}")

    ss58_format, prefix_length = _decode_prefix(data)
    key_length = len(data) - prefix_length - CHECKSUM_LENGTH
    if key_length not in PUBLIC_KEY_LENGTHS:
        raise ValidationError(f"Invalid decoded address length: {len(data)}")

    payload, checksum = data[:-CHECKSUM_LENGTH], data[-CHECKSUM_LENGTH:]
    if _checksum(payload) != checksum:
        raise ValidationError("Invalid address checksum")

    return payload[prefix_length:], ss58_format


def is_valid_address(address: str, ss58_format: int = 0) -> bool:
    """Return True if *address* is a well-formed SS58 address for *ss58_format*."""
    try:
        _, decoded_format = decode_address(address)
    except ValidationError:
        return False
    return decoded_format == ss58_format


def format_address(address: str, ss58_format: int = 0) -> str | None:
    """Re-encode *address* under *ss58_format*, or None if it does not decode."""
    try:
        public_key, _ = decode_address(address)
        return encode_address(public_key, ss58_format)
    except ValidationError:
        return None


def shorten_address(address: str, chars: int = 6) -> str:
    """Shorten an address for display, e.g. ``15oF4u...Hr6Sp5``."""
    if not address or chars <= 0 or len(address) <= chars * 2:
        return address
    return f"{address[:chars]}...{address[-chars:]}"


def is_same_address(address1: str, address2: str) -> bool:
    """Return True if both addresses decode to the same public key."""
    try:
        key1, _ = decode_address(address1)
        key2, _ = decode_address(address2)
    except ValidationError:
        return False
    return key1 == key2
