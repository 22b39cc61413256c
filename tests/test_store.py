"""Tests for the bounded payload store."""

from __future__ import annotations

from datetime import datetime

import pytest

from hookcatch.errors import EndpointNotFoundError, InvalidParameterError
from hookcatch.webhooks.store import Payload, PayloadStore


def _fill(store: PayloadStore, count: int) -> None:
    for seq in range(count):
        store.append(Payload(body={"seq": seq}))


def _seqs(payloads: list[Payload]) -> list[int]:
    return [p.body["seq"] for p in payloads]


class TestPayload:
    """Tests for Payload."""

    def test_defaults(self):
        """Test Payload defaults."""
        payload = Payload(body="hi")
        assert payload.headers == {}
        assert len(payload.id) == 36
        assert isinstance(payload.timestamp, datetime)
        assert payload.timestamp.tzinfo is not None

    def test_unique_ids(self):
        """Test each payload gets its own id."""
        assert Payload(body=1).id != Payload(body=1).id

    def test_to_dict(self):
        """Test the public dict form."""
        payload = Payload(body={"a": 1}, headers={"x-test": "1"})
        data = payload.to_dict()
        assert data["id"] == payload.id
        assert data["timestamp"] == payload.timestamp.isoformat()
        assert data["headers"] == {"x-test": "1"}
        assert data["body"] == {"a": 1}

    def test_to_dict_copies_headers(self):
        """Test mutating the serialized headers leaves the payload untouched."""
        payload = Payload(body="x", headers={"h": "1"})
        payload.to_dict()["headers"]["h"] = "tampered"
        assert payload.headers == {"h": "1"}


class TestPayloadStore:
    """Tests for PayloadStore."""

    def test_append_reports_size(self):
        """Test append reports the new size."""
        store = PayloadStore("hook", capacity=3)
        size, evicted = store.append(Payload(body=1))
        assert (size, evicted) == (1, 0)
        assert len(store) == 1

    def test_eviction_keeps_most_recent_in_order(self):
        """Test oldest payloads are dropped first and survivors keep order."""
        store = PayloadStore("hook", capacity=3)
        _fill(store, 5)
        page, total = store.page()
        assert total == 3
        assert _seqs(page) == [2, 3, 4]

    def test_append_at_capacity_reports_eviction(self):
        """Test append at capacity reports one eviction."""
        store = PayloadStore("hook", capacity=2)
        _fill(store, 2)
        size, evicted = store.append(Payload(body={"seq": 2}))
        assert (size, evicted) == (2, 1)

    def test_capacity_one(self):
        """Test a capacity of one keeps the latest payload."""
        store = PayloadStore("hook", capacity=1)
        _fill(store, 4)
        page, _ = store.page()
        assert _seqs(page) == [3]

    def test_invalid_capacity(self):
        """Test non-positive capacities are rejected."""
        with pytest.raises(InvalidParameterError):
            PayloadStore("hook", capacity=0)

    def test_capacity_property(self):
        """Test the capacity property."""
        assert PayloadStore("hook", capacity=7).capacity == 7

    def test_page_offset_and_limit(self):
        """Test offset and limit select a slice."""
        store = PayloadStore("hook", capacity=10)
        _fill(store, 6)
        page, total = store.page(offset=2, limit=3)
        assert total == 6
        assert _seqs(page) == [2, 3, 4]

    def test_page_limit_none_reads_to_end(self):
        """Test a None limit reads to the end."""
        store = PayloadStore("hook", capacity=10)
        _fill(store, 4)
        page, _ = store.page(offset=1)
        assert _seqs(page) == [1, 2, 3]

    def test_page_limit_past_end(self):
        """Test a limit past the end is clamped."""
        store = PayloadStore("hook", capacity=10)
        _fill(store, 4)
        page, _ = store.page(offset=3, limit=10)
        assert _seqs(page) == [3]

    def test_page_offset_out_of_range_is_empty(self):
        """Test an offset at or past the end returns an empty page."""
        store = PayloadStore("hook", capacity=10)
        _fill(store, 2)
        assert store.page(offset=2) == ([], 2)
        assert store.page(offset=50, limit=5) == ([], 2)

    def test_page_zero_limit(self):
        """Test a zero limit returns nothing."""
        store = PayloadStore("hook", capacity=10)
        _fill(store, 2)
        assert store.page(limit=0) == ([], 2)

    def test_page_rejects_negative_values(self):
        """Test negative offset or limit is rejected."""
        store = PayloadStore("hook", capacity=10)
        with pytest.raises(InvalidParameterError):
            store.page(offset=-1)
        with pytest.raises(InvalidParameterError):
            store.page(limit=-1)

    def test_clear(self):
        """Test clear returns the removed count."""
        store = PayloadStore("hook", capacity=10)
        _fill(store, 3)
        assert store.clear() == 3
        assert len(store) == 0
        assert store.clear() == 0

    def test_append_after_clear(self):
        """Test appends work after clear."""
        store = PayloadStore("hook", capacity=10)
        _fill(store, 3)
        store.clear()
        store.append(Payload(body={"seq": 9}))
        page, _ = store.page()
        assert _seqs(page) == [9]

    def test_close_refuses_appends(self):
        """Test a closed store cannot receive payloads."""
        store = PayloadStore("hook", capacity=10)
        _fill(store, 2)
        assert store.close() == 2
        assert store.closed is True
        with pytest.raises(EndpointNotFoundError):
            store.append(Payload(body=1))
        assert len(store) == 0
