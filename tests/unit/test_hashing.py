"""Unit tests for deterministic hashing utilities."""

import pytest

from wagestream_kernel.utils.hashing import (
    canonicalize_json,
    hash_payload,
    hash_stream_event,
)


class TestCanonicalJson:

    def test_key_order_irrelevant(self):
        assert canonicalize_json({"b": 1, "a": 2}) == canonicalize_json({"a": 2, "b": 1})

    def test_no_whitespace(self):
        assert canonicalize_json({"a": [1, 2]}) == '{"a":[1,2]}'

    def test_sets_sorted(self):
        assert canonicalize_json({"s": {3, 1, 2}}) == '{"s":[1,2,3]}'

    def test_unsupported_type_raises(self):
        with pytest.raises(TypeError):
            canonicalize_json({"x": object()})


class TestHashPayload:

    def test_deterministic(self):
        assert hash_payload({"amount": "100"}) == hash_payload({"amount": "100"})

    def test_sensitive_to_values(self):
        assert hash_payload({"amount": "100"}) != hash_payload({"amount": "101"})

    def test_hex_sha256(self):
        assert len(hash_payload([])) == 64


class TestHashStreamEvent:

    def test_genesis_differs_from_chained(self):
        genesis = hash_stream_event(1, "swept", "alice", "ab" * 32, None)
        chained = hash_stream_event(1, "swept", "alice", "ab" * 32, "cd" * 32)
        assert genesis != chained

    def test_missing_employee_placeholder(self):
        assert hash_stream_event(1, "deposited", None, "0" * 64, None) == hash_stream_event(
            1, "deposited", None, "0" * 64, None
        )

    def test_event_fields_all_committed(self):
        base = hash_stream_event(2, "withdrawn", "alice", "0" * 64, "1" * 64)
        assert base != hash_stream_event(3, "withdrawn", "alice", "0" * 64, "1" * 64)
        assert base != hash_stream_event(2, "swept", "alice", "0" * 64, "1" * 64)
        assert base != hash_stream_event(2, "withdrawn", "bob", "0" * 64, "1" * 64)


class TestFloatsRefused:

    def test_float_amount_rejected(self):
        with pytest.raises(TypeError, match="amount"):
            hash_payload({"amount": 1.5})

    def test_nested_float_rejected(self):
        with pytest.raises(TypeError):
            canonicalize_json({"rates": [1, 2.0]})

    def test_bool_and_wide_int_accepted(self):
        assert canonicalize_json({"ok": True, "n": 2**127 - 1}) == (
            '{"n":170141183460469231731687303715884105727,"ok":true}'
        )
