from __future__ import annotations

import re
import uuid

import pytest
from hypothesis import given, strategies as st

from cfsession import new_random_string, new_uuid
from cfsession.common.identifiers import RANDOM_STRING_ALPHABET

UUID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")


def test_new_uuid_is_canonical_version_4():
    samples = [new_uuid() for _ in range(10_000)]
    for value in samples:
        assert UUID_PATTERN.match(value), value
        parsed = uuid.UUID(value)
        assert parsed.version == 4
        assert parsed.variant == uuid.RFC_4122
    assert len(set(samples)) == len(samples)


@given(st.integers(min_value=0, max_value=512))
def test_random_string_length_and_alphabet(length: int) -> None:
    value = new_random_string(length)
    assert len(value) == length
    assert set(value) <= set(RANDOM_STRING_ALPHABET)


def test_random_string_zero_length_is_empty():
    assert new_random_string(0) == ""


def test_random_string_rejects_negative_length():
    with pytest.raises(ValueError):
        new_random_string(-1)


def test_random_string_uses_byte_modulo_mapping(monkeypatch):
    # 0 -> '0', 61 -> 'z', 62 wraps back to '0', 255 -> 255 % 62 == 7
    monkeypatch.setattr(
        "cfsession.common.identifiers.secrets.token_bytes",
        lambda n: bytes([0, 61, 62, 255])[:n],
    )
    assert new_random_string(4) == "0z07"
