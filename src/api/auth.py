"""
Request authentication for API routes.

Verifies the Firebase ID token sent as `Authorization: Bearer <token>` and
exposes the caller as a VerifiedUser. Routes depend on `verify_auth_token`
(or `require_admin`); tests replace it through `app.dependency_overrides`.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException
from firebase_admin import auth

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerifiedUser:
    uid: str
    is_admin: bool = False
    email: Optional[str] = None


def verify_auth_token(authorization: Optional[str] = Header(default=None)) -> VerifiedUser:
    """
    Resolve the calling user from the bearer token.

    Declared sync so FastAPI runs the (blocking) verification in its threadpool.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Unauthorized")

    token = authorization[len("Bearer "):].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        decoded = auth.verify_id_token(token)
    except (auth.InvalidIdTokenError, ValueError):
        raise HTTPException(status_code=401, detail="Unauthorized")
    except auth.CertificateFetchError as e:
        # Google signing keys unreachable; the token itself may be fine
        logger.error(f"verify_auth_token: could not fetch signing certificates: {e}")
        raise HTTPException(status_code=503, detail="Authentication temporarily unavailable")

    return VerifiedUser(
        uid=decoded["uid"],
        is_admin=bool(decoded.get("isAdmin", False)),
        email=decoded.get("email"),
    )


def require_admin(user: VerifiedUser = Depends(verify_auth_token)) -> VerifiedUser:
    """Admin-only routes"""
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
