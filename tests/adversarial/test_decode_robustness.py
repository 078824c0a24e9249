"""Adversarial tests — malformed bytes must raise DecodeError, never decode.

These tests verify that:
1. Every strict prefix of a valid envelope is rejected
2. Any corruption of the leading type byte is rejected
3. Non-canonical encodings, wrong field types, lengths, and unknown
   fields are rejected
4. Unknown or malformed payload tags are rejected
5. Structural failures are reported as DecodeError, not SignatureError
"""

from __future__ import annotations

from typing import Any

import cbor2
import pytest

from sitemesh.core.codec import (
    DecodeError,
    SignatureError,
    decode_and_verify,
    sign_and_encode,
)
from sitemesh.core.identity import Identity
from sitemesh.models.payloads import SiteRegistration


@pytest.fixture(scope="module")
def valid_bytes() -> bytes:
    return sign_and_encode(
        Identity.generate(), SiteRegistration(site_name="rosa"), envelope_id=42
    )


_DROP = object()


def _repack(valid: bytes, **changes: Any) -> bytes:
    raw = cbor2.loads(valid)
    for key, value in changes.items():
        if value is _DROP:
            raw.pop(key)
        else:
            raw[key] = value
    return cbor2.dumps(raw)


class TestTruncation:
    def test_every_strict_prefix_rejected(self, valid_bytes):
        for length in range(len(valid_bytes)):
            with pytest.raises(DecodeError):
                decode_and_verify(valid_bytes[:length])

    def test_empty_input_rejected(self):
        with pytest.raises(DecodeError):
            decode_and_verify(b"")


class TestLeadingByte:
    def test_every_other_leading_byte_rejected(self, valid_bytes):
        for value in range(256):
            if value == valid_bytes[0]:
                continue
            corrupted = bytes([value]) + valid_bytes[1:]
            with pytest.raises(DecodeError):
                decode_and_verify(corrupted)

    def test_trailing_bytes_rejected(self, valid_bytes):
        with pytest.raises(DecodeError, match="Malformed"):
            decode_and_verify(valid_bytes + b"\x00")


class TestStructure:
    def test_not_a_map(self):
        with pytest.raises(DecodeError, match="must be a map"):
            decode_and_verify(cbor2.dumps([1, b"sig", b"key", {}]))

    def test_garbage(self):
        with pytest.raises(DecodeError):
            decode_and_verify(b"this is not an envelope {{{")

    @pytest.mark.parametrize("field", ["id", "signature", "public_key", "payload"])
    def test_missing_field(self, valid_bytes, field):
        with pytest.raises(DecodeError, match="missing fields"):
            decode_and_verify(_repack(valid_bytes, **{field: _DROP}))

    def test_over_long_integer_head_rejected(self, valid_bytes):
        canonical_id = b"\x62id\x18\x2a"
        assert canonical_id in valid_bytes
        over_long = valid_bytes.replace(canonical_id, b"\x62id\x19\x00\x2a", 1)
        with pytest.raises(DecodeError, match="canonical"):
            decode_and_verify(over_long)

    def test_indefinite_length_map_rejected(self, valid_bytes):
        indefinite = b"\xbf" + valid_bytes[1:] + b"\xff"
        with pytest.raises(DecodeError):
            decode_and_verify(indefinite)

    def test_unexpected_field(self, valid_bytes):
        with pytest.raises(DecodeError, match="unexpected fields"):
            decode_and_verify(_repack(valid_bytes, extra="x"))

    @pytest.mark.parametrize(
        "value",
        ["42", -1, 2**32, 1.5, True, None],
        ids=["str", "negative", "over-u32", "float", "bool", "nil"],
    )
    def test_bad_id(self, valid_bytes, value):
        with pytest.raises(DecodeError):
            decode_and_verify(_repack(valid_bytes, id=value))

    @pytest.mark.parametrize(
        "value",
        [b"\x00" * 63, b"\x00" * 65, "a" * 64, None],
        ids=["short", "long", "str", "nil"],
    )
    def test_bad_signature(self, valid_bytes, value):
        with pytest.raises(DecodeError):
            decode_and_verify(_repack(valid_bytes, signature=value))

    @pytest.mark.parametrize(
        "value",
        [b"\x00" * 31, b"\x00" * 33, "a" * 32, 7],
        ids=["short", "long", "str", "int"],
    )
    def test_bad_public_key(self, valid_bytes, value):
        with pytest.raises(DecodeError):
            decode_and_verify(_repack(valid_bytes, public_key=value))


class TestPayloadTag:
    def test_unknown_tag(self, valid_bytes):
        with pytest.raises(DecodeError, match="Unknown payload tag"):
            decode_and_verify(
                _repack(valid_bytes, payload={"SiteDeletion": {"site_name": "rosa"}})
            )

    def test_two_tags(self, valid_bytes):
        payload = {
            "SiteRegistration": {"site_name": "rosa"},
            "SiteNotification": {"notification": "hi"},
        }
        with pytest.raises(DecodeError, match="exactly one"):
            decode_and_verify(_repack(valid_bytes, payload=payload))

    def test_empty_payload(self, valid_bytes):
        with pytest.raises(DecodeError, match="exactly one"):
            decode_and_verify(_repack(valid_bytes, payload={}))

    def test_payload_not_a_map(self, valid_bytes):
        with pytest.raises(DecodeError):
            decode_and_verify(_repack(valid_bytes, payload="SiteRegistration"))

    def test_variant_fields_not_a_map(self, valid_bytes):
        with pytest.raises(DecodeError, match="fields must be a map"):
            decode_and_verify(_repack(valid_bytes, payload={"SiteRegistration": "rosa"}))

    def test_wrong_variant_field_type(self, valid_bytes):
        with pytest.raises(DecodeError, match="validation failed"):
            decode_and_verify(
                _repack(valid_bytes, payload={"SiteRegistration": {"site_name": 5}})
            )

    def test_missing_variant_field(self, valid_bytes):
        with pytest.raises(DecodeError, match="validation failed"):
            decode_and_verify(_repack(valid_bytes, payload={"SiteRegistration": {}}))

    def test_extra_variant_field(self, valid_bytes):
        payload = {"SiteRegistration": {"site_name": "rosa", "admin": True}}
        with pytest.raises(DecodeError, match="validation failed"):
            decode_and_verify(_repack(valid_bytes, payload=payload))

    def test_fields_of_other_variant(self, valid_bytes):
        payload = {"SiteRegistration": {"notification": "rosa"}}
        with pytest.raises(DecodeError):
            decode_and_verify(_repack(valid_bytes, payload=payload))


class TestErrorCategory:
    def test_structural_errors_are_not_signature_errors(self, valid_bytes):
        try:
            decode_and_verify(valid_bytes[:10])
        except DecodeError as exc:
            assert not isinstance(exc, SignatureError)
        else:
            pytest.fail("truncated envelope decoded")

    def test_well_formed_but_unsigned_payload_is_signature_error(self, valid_bytes):
        """Structurally valid replacement payload reaches verification."""
        payload = {"SiteRegistration": {"site_name": "mallory"}}
        with pytest.raises(SignatureError):
            decode_and_verify(_repack(valid_bytes, payload=payload))
