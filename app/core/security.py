"""
Maintenance trigger authentication.

The cron caller sends ``Authorization: Bearer <CRON_SECRET>``.  When no
secret is configured the check is skipped and a warning is logged.
"""

import logging
import secrets
from typing import Optional

from app.core.errors import AuthorizationError

logger = logging.getLogger(__name__)


def verify_cron_secret(authorization: Optional[str], expected_secret: Optional[str]) -> None:
    """Raise :class:`AuthorizationError` unless the bearer token matches."""
    if not expected_secret:
        logger.warning("CRON_SECRET is not configured; maintenance trigger is unauthenticated")
        return

    if not authorization:
        raise AuthorizationError("Missing authorization header")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not secrets.compare_digest(token.strip().encode(), expected_secret.encode()):
        raise AuthorizationError("Invalid maintenance secret")
