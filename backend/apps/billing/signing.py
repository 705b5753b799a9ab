"""
Subscription provider webhook signatures.

The provider signs the raw request body with HMAC-SHA256 using the shared
webhook secret and sends the hex digest in the X-Signature header,
optionally prefixed with "sha256=".
"""

import hashlib
import hmac

SIGNATURE_HEADER = "X-Signature"
SIGNATURE_PREFIX = "sha256="


def generate_signature(payload: bytes, secret: str) -> str:
    """
    Compute the hex HMAC-SHA256 of ``payload``.

    Args:
        payload: Raw request body
        secret: The webhook signing secret

    Returns:
        Lowercase hex digest (no prefix)
    """
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_signature(payload: bytes, secret: str, signature: str | None) -> bool:
    """
    Verify a webhook signature.

    Args:
        payload: Raw request body, exactly as received
        secret: The webhook signing secret
        signature: Value of the X-Signature header

    Returns:
        True if the signature matches the payload
    """
    if not secret or not signature:
        return False

    signature = signature.strip()
    if signature.startswith(SIGNATURE_PREFIX):
        signature = signature[len(SIGNATURE_PREFIX) :]

    expected = generate_signature(payload, secret)

    # Constant-time comparison to prevent timing attacks
    return hmac.compare_digest(expected.encode(), signature.lower().encode("utf-8"))
