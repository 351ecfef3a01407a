# -*- coding: utf-8 -*-
"""Engine defaults.

This module is intentionally tiny and *import-safe*: plain constants only,
no environment lookups and no file reads. Callers that need different values
pass them explicitly (``ValidationConfig``, ``AutoFixer(...)``).
"""

from __future__ import annotations

# Profile used when a caller does not name one.
DEFAULT_PROFILE: str = "strict"

# Messages above this many UTF-8 bytes are rejected before parsing.
DEFAULT_MAX_MESSAGE_SIZE: int = 10 * 1024

# Lifetime given to messages that lack an expiration.
DEFAULT_EXPIRATION_MINUTES: int = 10

# Length of generated nonces.
NONCE_LENGTH: int = 16

# --- Template defaults ---
TEMPLATE_DOMAIN: str = "example.com"
TEMPLATE_ADDRESS: str = "0x742d35cc6c4c1ca5d428d9ee0e9b1e1234567890"
TEMPLATE_STATEMENT: str = "Sign in with Ethereum to authenticate."
TEMPLATE_URI: str = "https://example.com"
TEMPLATE_CHAIN_ID: str = "1"
