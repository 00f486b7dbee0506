"""Authentication dependency for the Pagelens API.

When PAGELENS_API_TOKEN is not set, authentication is disabled
(development mode). Otherwise every request needs the Bearer token.
"""

from __future__ import annotations

import os
import secrets

from fastapi import Depends, Header, HTTPException


def _get_api_token() -> str:
    """Read the API token at call time (supports test overrides)."""
    return os.getenv("PAGELENS_API_TOKEN", "")


def _get_bearer_token(authorization: str = Header(default="")) -> str:
    if authorization.startswith("Bearer "):
        return authorization[7:]
    return ""


async def require_api_auth(token: str = Depends(_get_bearer_token)) -> str:
    api_token = _get_api_token()
    if not api_token:
        return ""
    if not secrets.compare_digest(token, api_token):
        raise HTTPException(status_code=401, detail="Invalid or missing API token")
    return token
