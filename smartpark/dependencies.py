# smartpark/dependencies.py
"""
Request-scoped FastAPI dependencies.

Authentication happens upstream: the auth gateway verifies the token and
forwards the caller's identity in X-User-Id / X-User-Role.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from smartpark.actor import Actor
from smartpark.constants import ActorRole


def get_actor(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Actor:
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-User-Id header")
    role = (x_user_role or ActorRole.USER.value).lower()
    if role not in (ActorRole.USER.value, ActorRole.ADMIN.value):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=f"Unknown role '{x_user_role}'")
    return Actor(user_id=x_user_id, role=role)


def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return actor
