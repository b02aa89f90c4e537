import hashlib
import hmac
import logging
from typing import Optional

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="


def compute_signature(secret: str, body: bytes) -> str:
    """Return the X-Hub-Signature-256 value GitHub would send for body."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return SIGNATURE_PREFIX + digest


def verify_signature(body: bytes, signature: Optional[str], secret: str) -> bool:
    """
    Verify a GitHub webhook signature using HMAC SHA-256.

    Args:
        body: The raw request body bytes, exactly as received
        signature: The X-Hub-Signature-256 header value
        secret: The webhook secret configured for the repository

    Returns:
        True if the signature is valid, False otherwise
    """
    if not signature:
        logger.warning("Missing webhook signature")
        return False

    if not signature.startswith(SIGNATURE_PREFIX):
        logger.warning("Invalid signature format - expected sha256= prefix")
        return False

    expected = compute_signature(secret, body)
    is_valid = hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))

    if not is_valid:
        logger.warning("Webhook signature validation failed")

    return is_valid
