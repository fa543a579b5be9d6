"""Test configuration and fixtures for signoz-mcp package."""

from __future__ import annotations

import pytest

from tests.fakes import FakeContext, FakeSigNozBackend

SIGNOZ_URL = "https://signoz.test"
DEFAULT_KEY = "default-key"


@pytest.fixture()
def backend() -> FakeSigNozBackend:
    """Fake SigNoz API shared by the client under test."""
    return FakeSigNozBackend()


@pytest.fixture()
def state(backend):
    """Return an MCPState whose clients talk to the fake backend."""
    from signoz_mcp.__main__ import build_state

    return build_state(SIGNOZ_URL, DEFAULT_KEY, transport=backend.transport)


@pytest.fixture()
def ctx(state) -> FakeContext:
    """Context of a stdio call, which carries no per-request credential."""
    return FakeContext(state)
