"""
Authentication Module for the BebCom Delivery API
=================================================

This module gates the admin endpoints (bulk availability updates, reset,
backup, audit, reconnect) behind a shared admin key sent by the admin panel
in the ``x-admin-key`` header.

Accepted Credentials:
---------------------
1. **ADMIN_KEY**: The plain shared secret, compared in constant time.
2. **ADMIN_KEY_SHA256**: Hex SHA-256 digest of the secret, for deployments
   that prefer not to keep the plain key in their environment. The SHA-256 of
   the presented key is compared in constant time.

If both are set, a key matching either is accepted.

Security Features:
------------------
- **Timing Attack Prevention**: Uses `secrets.compare_digest()` so the
  comparison time does not depend on how many characters match.

- **Fail Closed**: If no admin key is configured, admin endpoints return 503
  Service Unavailable rather than allowing unauthenticated access.

- **No Hints**: A wrong key gets a generic 401; the expected key is never
  echoed back.

Usage:
------
    from delivery_api.auth import verify_admin_key

    @router.post("/admin/reset-data")
    async def reset_data(_admin: None = Depends(verify_admin_key)):
        ...
"""

import hashlib
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader

from . import config


# =============================================================================
# Header Scheme
# =============================================================================
# auto_error=False so a missing header produces our 401 (not FastAPI's 403).

admin_key_header = APIKeyHeader(name="x-admin-key", auto_error=False)


def _key_matches(presented: str) -> bool:
    presented_bytes = presented.encode("utf-8")

    if config.ADMIN_KEY and secrets.compare_digest(presented_bytes, config.ADMIN_KEY.encode("utf-8")):
        return True

    if config.ADMIN_KEY_SHA256:
        digest = hashlib.sha256(presented_bytes).hexdigest()
        if secrets.compare_digest(digest.encode("utf-8"), config.ADMIN_KEY_SHA256.encode("utf-8")):
            return True

    return False


def verify_admin_key(api_key: Optional[str] = Depends(admin_key_header)) -> None:
    """
    FastAPI dependency requiring a valid admin key.

    Raises:
        HTTPException (503): If no admin key is configured.
        HTTPException (401): If the header is missing or the key is wrong.
    """
    # Fail closed: if no key is configured, deny all access
    if not config.ADMIN_KEY and not config.ADMIN_KEY_SHA256:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin authentication not configured. Set ADMIN_KEY environment variable.",
        )

    if not api_key or not _key_matches(api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized. Send the admin key in the x-admin-key header",
        )


def admin_enabled() -> bool:
    """Whether admin endpoints are usable (an admin key is configured)."""
    return bool(config.ADMIN_KEY or config.ADMIN_KEY_SHA256)
