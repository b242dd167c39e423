"""Shared fixtures for appseal tests."""

from __future__ import annotations

import pytest

from appseal.core.seal import HmacSigner, SealIssuer


@pytest.fixture
def hmac_signer() -> HmacSigner:
    """An HMAC signer over a fixed test key."""
    return HmacSigner(b"test-seal-key")


@pytest.fixture
def seal_issuer(hmac_signer: HmacSigner) -> SealIssuer:
    """A seal issuer identified as ``appfair.net``."""
    return SealIssuer(hmac_signer, "appfair.net")
