"""Shared-secret signatures for inbound webhooks."""

import hashlib
import hmac


def compute_signature(payload: bytes, secret: str) -> str:
  """Returns the hex HMAC-SHA256 of a raw request body."""
  return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_webhook_signature(
    payload: bytes, signature: str | None, secret: str | None
) -> bool:
  """Checks a webhook signature.

  Unsigned requests and deployments without a secret are let through, which
  mirrors how the voice platform is configured during setup.

  Args:
    payload: The raw request body.
    signature: The hex digest sent by the caller, if any.
    secret: The shared secret, if configured.

  Returns:
    False only when both a signature and a secret are present and they
    disagree.
  """
  if not secret or not signature:
    return True
  return hmac.compare_digest(compute_signature(payload, secret), signature)
