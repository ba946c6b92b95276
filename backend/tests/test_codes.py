"""
Unit tests for validation codes, scan payload decoding and intake formatting.
"""

import json
from datetime import datetime, timezone

import pytest

from app.schemas.registration import format_national_id, format_phone
from app.services.codes import (
    CODE_ALPHABET,
    build_qr_payload,
    decode_scan_payload,
    generate_validation_code,
)


def test_generated_codes_use_barcode_safe_alphabet():
    code = generate_validation_code(12)
    assert len(code) == 12
    assert set(code) <= set(CODE_ALPHABET)


def test_qr_payload_decodes_to_code():
    generated_at = datetime(2026, 12, 15, 9, 0, tzinfo=timezone.utc)
    payload = build_qr_payload("K7Q2M9XA", "Ana Lima", 42, generated_at)

    data = json.loads(payload)
    assert data == {
        "code": "K7Q2M9XA",
        "name": "Ana Lima",
        "registration_id": 42,
        "generated_at": "2026-12-15T09:00:00+00:00",
    }
    assert decode_scan_payload(payload) == "K7Q2M9XA"


@pytest.mark.parametrize("raw,expected", [
    ("K7Q2M9XA", "K7Q2M9XA"),
    ("  K7Q2M9XA \n", "K7Q2M9XA"),
    ('{"validation_code": "K7Q2M9XA"}', "K7Q2M9XA"),
    ('{"name": "no code here"}', ""),
    ("{not json", "{not json"),
    ("", ""),
])
def test_decode_scan_payload(raw, expected):
    assert decode_scan_payload(raw) == expected


@pytest.mark.parametrize("raw,expected", [
    ("52998224725", "529.982.247-25"),
    ("529.982.247-25", "529.982.247-25"),
    (" 529 982 247 25 ", "529.982.247-25"),
])
def test_format_national_id(raw, expected):
    assert format_national_id(raw) == expected


def test_format_national_id_rejects_wrong_length():
    with pytest.raises(ValueError):
        format_national_id("5299822472")


@pytest.mark.parametrize("raw,expected", [
    ("11987654321", "(11) 98765-4321"),
    ("(11) 98765-4321", "(11) 98765-4321"),
    ("1133334444", "(11) 3333-4444"),
])
def test_format_phone(raw, expected):
    assert format_phone(raw) == expected


def test_format_phone_rejects_short_numbers():
    with pytest.raises(ValueError):
        format_phone("98765-4321")
