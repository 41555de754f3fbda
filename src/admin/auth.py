"""HTTP Basic Auth for the admin API and the stored-file routes.

Credentials come from ADMIN_USER / ADMIN_PASS. With either unset the admin
surface is closed (503) rather than open.
"""

from __future__ import annotations

import logging
import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from src.config import settings

logger = logging.getLogger(__name__)

security = HTTPBasic()


def _matches(given: str, expected: str) -> bool:
    return secrets.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


async def verify_admin(
    credentials: HTTPBasicCredentials = Depends(security),  # noqa: B008
) -> str:
    """FastAPI dependency: verify HTTP Basic credentials.

    Returns the username on success, raises 401 on failure.
    """
    expected_user = settings.security.admin_user
    expected_pass = settings.security.admin_pass
    if not expected_user or not expected_pass:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="ADMIN_USER / ADMIN_PASS not configured",
        )

    # Evaluate both so timing does not reveal which one was wrong
    user_ok = _matches(credentials.username, expected_user)
    pass_ok = _matches(credentials.password, expected_pass)
    if not (user_ok and pass_ok):
        logger.warning("Rejected admin credentials for user %r", credentials.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username
