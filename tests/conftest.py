"""Shared fixtures for hookcatch tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from hookcatch.core.config import ReceiverConfig, clear_config
from hookcatch.webhooks import EndpointRegistry, RequestDispatcher, SignatureVerifier


@pytest.fixture
def fresh_config_cache():
    clear_config()
    yield
    clear_config()


@pytest.fixture
def config() -> ReceiverConfig:
    return ReceiverConfig(_env_file=None)


@pytest.fixture
def registry(config: ReceiverConfig) -> Iterator[EndpointRegistry]:
    with EndpointRegistry(config=config) as reg:
        yield reg


@pytest.fixture
def dispatcher(registry: EndpointRegistry) -> RequestDispatcher:
    return RequestDispatcher(registry)


@pytest.fixture
def verifier() -> SignatureVerifier:
    return SignatureVerifier()
