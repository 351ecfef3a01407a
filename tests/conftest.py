# -*- coding: utf-8 -*-

"""Pytest configuration.

This project is a simple flat folder layout (installable, but not required to be).
For local testing we add the repository root to sys.path so that imports like
`from core...` work reliably.

Shared fixtures pin the clock so time-window rules are deterministic.
"""

from __future__ import annotations

import os
import sys
from dataclasses import replace
from datetime import datetime, timezone

import pytest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from eth_utils import to_checksum_address  # noqa: E402

from core.types import SiweMessageFields  # noqa: E402
from domain.clock import fixed_clock  # noqa: E402
from domain.parser import generate_message  # noqa: E402

NOW = datetime(2024, 1, 1, 0, 5, 0, tzinfo=timezone.utc)

LOWER_ADDRESS = "0x742d35cc6c4c1ca5d428d9ee0e9b1e1234567890"

BASE_FIELDS = SiweMessageFields(
    domain="example.com",
    address=to_checksum_address(LOWER_ADDRESS),
    statement="Sign in to Example.",
    uri="https://example.com/login",
    version="1",
    chain_id="1",
    nonce="Xk9fP2qLm7Rt4Wz8",
    issued_at="2024-01-01T00:00:00.000Z",
    expiration_time="2024-01-01T00:10:00.000Z",
)

# Worked example message (no statement, no expiration).
EXAMPLE_MESSAGE = (
    "example.com wants you to sign in with your Ethereum account:\n"
    "0x742d35Cc6C4C1Ca5d428d9eE0e9B1E1234567890\n"
    "\n"
    "\n"
    "URI: https://example.com\n"
    "Version: 1\n"
    "Chain ID: 1\n"
    "Nonce: abcdef123456\n"
    "Issued At: 2024-01-01T00:00:00Z"
)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock():
    return fixed_clock(NOW)


@pytest.fixture
def build_message():
    """Canonical message text from the well-formed base fields plus overrides."""

    def _build(**overrides) -> str:
        return generate_message(replace(BASE_FIELDS, **overrides))

    return _build


@pytest.fixture
def well_formed(build_message) -> str:
    return build_message()


@pytest.fixture
def example_message() -> str:
    return EXAMPLE_MESSAGE
