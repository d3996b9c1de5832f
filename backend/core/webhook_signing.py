"""Webhook trigger URL/secret generation and HMAC payload verification.

Inbound webhook calls may carry a ``signature`` query parameter:

  signature = hex(HMAC-SHA256(secret, canonical_json(payload)))

``canonical_json`` is the compact serialization of the parsed JSON body
(no whitespace between tokens, key order preserved, non-ASCII kept as-is),
which is what a JavaScript caller gets from ``JSON.stringify(payload)``.

Usage:
    signature = compute_payload_signature(payload, trigger.secret)
    verify_payload_signature(payload, trigger.secret, signature)  # -> bool
"""

import hashlib
import hmac
import json
import secrets
from typing import Any

WEBHOOK_PATH_PREFIX = "webhook_"


def canonical_json(payload: Any) -> str:
    """Serialize a payload exactly the way signatures are computed over it."""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def compute_payload_signature(payload: Any, secret: str) -> str:
    """Return the hex HMAC-SHA256 of the canonical JSON payload."""
    return hmac.new(
        secret.encode(),
        canonical_json(payload).encode(),
        hashlib.sha256,
    ).hexdigest()


def verify_payload_signature(payload: Any, secret: str, signature: str) -> bool:
    """Check a supplied signature against the payload.

    Args:
        payload: Parsed JSON body of the inbound call
        secret: Trigger signing secret
        signature: Hex digest supplied by the caller

    Returns:
        True only on an exact match
    """
    expected = compute_payload_signature(payload, secret)
    # Constant-time comparison
    return hmac.compare_digest(expected.encode(), signature.encode())


def generate_webhook_path() -> str:
    """Generate an unguessable URL suffix for a webhook trigger."""
    return f"{WEBHOOK_PATH_PREFIX}{secrets.token_hex(16)}"


def generate_webhook_secret() -> str:
    """Generate a cryptographically secure webhook signing secret."""
    return secrets.token_hex(32)
