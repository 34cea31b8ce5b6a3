"""
Authentication dependencies for FastAPI.

Sign-in happens at the identity provider; the client forwards the access
token it received as ``Authorization: Bearer <token>``. The token subject is
the user id used by every profile, request and room record.
"""

import logging
import uuid
from typing import Any

from fastapi import Depends, Header, HTTPException
from pydantic import BaseModel

from orbit.auth.security import decode_access_token
from orbit.config import DEV_MODE

logger = logging.getLogger(__name__)


class AuthErrorDetail(BaseModel):
    message: str = "unauthorized"
    reason: str
    trace_id: str


def _unauthorized(reason: str, trace_id: str, message: str = "unauthorized") -> HTTPException:
    logger.warning("[AUTH_FAILURE] trace_id=%s reason=%s", trace_id, reason)
    detail: dict[str, Any]
    if DEV_MODE:
        detail = AuthErrorDetail(message=message, reason=reason, trace_id=trace_id).model_dump()
    else:
        detail = {"message": message, "trace_id": trace_id}
    return HTTPException(status_code=401, detail=detail)


def _extract_bearer(authorization: str | None, trace_id: str) -> str:
    if not authorization:
        raise _unauthorized("missing_token", trace_id, "Authentication required")
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise _unauthorized("malformed_token", trace_id, "Invalid Authorization header")
    return parts[1].strip()


def get_current_user(authorization: str | None = Header(default=None, alias="Authorization")) -> dict[str, Any]:
    trace_id = str(uuid.uuid4())
    token = _extract_bearer(authorization, trace_id)
    try:
        payload = decode_access_token(token)
    except HTTPException as e:
        reason = "token_expired" if "expired" in str(e.detail).lower() else "signature_invalid"
        if e.status_code != 401:
            raise
        raise _unauthorized(reason, trace_id)

    user_id = str(payload.get("sub") or "").strip()
    if not user_id:
        raise _unauthorized("token_missing_subject", trace_id)

    logger.debug("[auth] token valid, sub=%s", user_id)
    return {"id": user_id, "email": payload.get("email")}


def require_user_id(current_user: dict[str, Any] = Depends(get_current_user)) -> str:
    return str(current_user["id"])
