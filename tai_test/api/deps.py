"""
Shared API dependencies
"""
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session
from typing import Optional

from tai_test.database import get_db
from tai_test.models import User
from tai_test.services.user_service import user_service


def get_bearer_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    return token or None


async def get_current_user(
    token: Optional[str] = Depends(get_bearer_token),
    db: Session = Depends(get_db)
) -> User:
    """
    Resolve the caller from the OAuth token

    The token is the provider's opaque open_id; sign-in itself happens
    upstream, so presence of a token is what gates these routes.
    """
    if token is None:
        raise HTTPException(status_code=401, detail="Missing Bearer token")
    return user_service.upsert_user(db, open_id=token)
