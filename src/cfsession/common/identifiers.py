"""Random identifiers for request correlation and generated credentials."""

from __future__ import annotations

import secrets

RANDOM_STRING_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"


def new_uuid() -> str:
    """Return a random RFC 4122 version 4 UUID in canonical 8-4-4-4-12 form."""

    raw = bytearray(secrets.token_bytes(16))
    # variant bits, RFC 4122 section 4.1.1
    raw[8] = (raw[8] & 0x3F) | 0x80
    # version 4, RFC 4122 section 4.1.3
    raw[6] = (raw[6] & 0x0F) | 0x40
    hexed = raw.hex()
    return f"{hexed[0:8]}-{hexed[8:12]}-{hexed[12:16]}-{hexed[16:20]}-{hexed[20:32]}"


def new_random_string(length: int) -> str:
    """Return ``length`` characters drawn from ``0-9A-Za-z``.

    Each random byte is reduced modulo 62, so the first 8 symbols are very
    slightly more likely than the rest. Do not use for key material.
    """

    if length < 0:
        raise ValueError("length must be non-negative")
    size = len(RANDOM_STRING_ALPHABET)
    return "".join(RANDOM_STRING_ALPHABET[byte % size] for byte in secrets.token_bytes(length))
