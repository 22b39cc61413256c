"""Property-based tests for receiver invariants."""

from __future__ import annotations

import json
from uuid import uuid4

from hypothesis import given, settings
from hypothesis import strategies as st

from hookcatch.core.config import ReceiverConfig
from hookcatch.webhooks import SignatureVerifier, create_receiver

_CONFIG = ReceiverConfig(_env_file=None, metrics_enabled=False)

_endpoint_ids = st.text(
    alphabet="abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-",
    min_size=1,
    max_size=20,
)
_json_values = st.recursive(
    st.none() | st.booleans() | st.integers() | st.text(),
    lambda children: st.lists(children, max_size=4) | st.dictionaries(st.text(), children, max_size=4),
    max_leaves=10,
)


def _seqs(response) -> list[int]:
    return [p["body"]["seq"] for p in response.metadata["payloads"]]


class TestUniqueness:
    """Property tests for endpoint id uniqueness."""

    @given(st.lists(_endpoint_ids, min_size=1, max_size=15))
    @settings(max_examples=50)
    def test_ids_never_collide(self, ids):
        """Test duplicate ids are always rejected."""
        receiver = create_receiver(_CONFIG)
        registered: set[str] = set()
        for endpoint_id in ids:
            response = receiver.dispatch({"action": "register", "endpointId": endpoint_id})
            if endpoint_id in registered:
                assert response.metadata["errorCode"] == "DUPLICATE_ENDPOINT"
            else:
                assert response.metadata["success"] is True
                registered.add(endpoint_id)

        listed = [ep["id"] for ep in receiver.dispatch({"action": "list"}).metadata["endpoints"]]
        assert len(listed) == len(set(listed)) == len(registered)


class TestBoundedHistory:
    """Property tests for bounded payload history."""

    @given(capacity=st.integers(min_value=1, max_value=10), deliveries=st.integers(min_value=0, max_value=30))
    @settings(max_examples=75)
    def test_keeps_most_recent_in_order(self, capacity, deliveries):
        """Test only the most recent payloads are kept, in order."""
        receiver = create_receiver(_CONFIG)
        receiver.dispatch({"action": "register", "endpointId": "hook", "maxPayloads": capacity})
        for seq in range(deliveries):
            response = receiver.dispatch({"action": "receive", "endpointId": "hook", "payload": {"seq": seq}})
            assert response.metadata["totalStored"] <= capacity

        inspected = receiver.dispatch({"action": "inspect", "endpointId": "hook"})
        assert _seqs(inspected) == list(range(deliveries))[-capacity:]


class TestPagination:
    """Property tests for inspect paging."""

    @given(
        size=st.integers(min_value=0, max_value=20),
        offset=st.integers(min_value=0, max_value=30),
        limit=st.none() | st.integers(min_value=0, max_value=30),
    )
    @settings(max_examples=100)
    def test_page_matches_slice(self, size, offset, limit):
        """Test pages match the equivalent list slice."""
        receiver = create_receiver(_CONFIG)
        receiver.dispatch({"action": "register", "endpointId": "hook"})
        for seq in range(size):
            receiver.dispatch({"action": "receive", "endpointId": "hook", "payload": {"seq": seq}})

        request = {"action": "inspect", "endpointId": "hook", "offset": offset}
        if limit is not None:
            request["limit"] = limit
        response = receiver.dispatch(request)

        expected = list(range(size))[offset : None if limit is None else offset + limit]
        assert response.metadata["success"] is True
        assert _seqs(response) == expected
        assert response.metadata["returned"] == len(expected)


class TestSignatureCorrectness:
    """Property tests for signature verification."""

    @given(body=st.text(min_size=1), position=st.integers(min_value=0))
    @settings(max_examples=75)
    def test_body_mutation_is_rejected(self, body, position):
        """Test a changed body fails verification."""
        receiver = create_receiver(_CONFIG)
        receiver.dispatch({"action": "register", "endpointId": "secure", "secret": "k"})
        signature = SignatureVerifier().sign("k", body)

        index = position % len(body)
        mutated = body[:index] + chr((ord(body[index]) + 1) % 0x110000 or 1) + body[index + 1 :]
        if mutated == body or any(0xD800 <= ord(c) <= 0xDFFF for c in mutated):
            mutated = body + "!"

        ok = receiver.dispatch(
            {"action": "receive", "endpointId": "secure", "payload": body, "headers": {"x-signature-256": signature}}
        )
        bad = receiver.dispatch(
            {"action": "receive", "endpointId": "secure", "payload": mutated, "headers": {"x-signature-256": signature}}
        )
        assert ok.metadata["success"] is True
        assert bad.metadata["errorCode"] == "INVALID_SIGNATURE"

    @given(body=_json_values.filter(lambda v: v is not None), position=st.integers(min_value=0, max_value=63))
    @settings(max_examples=75)
    def test_signature_mutation_is_rejected(self, body, position):
        """Test a changed signature fails verification."""
        receiver = create_receiver(_CONFIG)
        receiver.dispatch({"action": "register", "endpointId": "secure", "secret": "k"})
        signature = SignatureVerifier().sign("k", body)

        index = len("sha256=") + position
        replacement = "0" if signature[index] != "0" else "1"
        tampered = signature[:index] + replacement + signature[index + 1 :]

        response = receiver.dispatch(
            {"action": "receive", "endpointId": "secure", "payload": body, "headers": {"x-signature-256": tampered}}
        )
        assert response.metadata["errorCode"] == "INVALID_SIGNATURE"


class TestSecretConfidentiality:
    """Property tests for secret confidentiality."""

    @given(name=st.none() | st.text(max_size=10), body=_json_values.filter(lambda v: v is not None))
    @settings(max_examples=50)
    def test_secret_never_serialized(self, name, body):
        """Test the secret never appears in any response."""
        secret = f"whsec-{uuid4().hex}"
        receiver = create_receiver(_CONFIG)

        request = {"action": "register", "endpointId": "secure", "secret": secret}
        if name is not None:
            request["name"] = name
        responses = [receiver.dispatch(request)]
        signature = SignatureVerifier().sign(secret, body)
        responses.append(
            receiver.dispatch(
                {"action": "receive", "endpointId": "secure", "payload": body, "headers": {"x-signature-256": signature}}
            )
        )
        responses.append(receiver.dispatch({"action": "list"}))
        responses.append(receiver.dispatch({"action": "inspect", "endpointId": "secure"}))
        responses.append(receiver.dispatch({"action": "unregister", "endpointId": "secure"}))

        assert responses[1].metadata["success"] is True
        for response in responses:
            serialized = json.dumps(response.to_dict(), default=str)
            assert secret not in serialized
            assert secret not in response.message
