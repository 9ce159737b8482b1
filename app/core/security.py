"""
Caller identity at the HTTP boundary.

Authentication happens upstream of DocLedger (gateway, session service).
The authenticated principal arrives in the `X-Owner-Id` header and is
passed explicitly into every registry call; nothing below the routers
reads identity from ambient state.
"""

from typing import Optional

from fastapi import Header, HTTPException, status

from app.core.validation import validate_owner_id

OWNER_HEADER = "X-Owner-Id"


async def require_owner(
    x_owner_id: Optional[str] = Header(None, alias=OWNER_HEADER),
) -> str:
    """Require an owner identity; 401 when missing, 422 when malformed."""
    if not x_owner_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Authentication required: missing {OWNER_HEADER} header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return validate_owner_id(x_owner_id.strip())
