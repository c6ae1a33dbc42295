from __future__ import annotations

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.core.context import ActorContext, get_request_id, request_metadata_from_headers
from newsroom.core.database import get_db
from newsroom.core.logging import get_logger
from newsroom.core.security import decode_access_token
from newsroom.models import User

logger = get_logger("api.actor")
security = HTTPBearer(auto_error=False)


async def get_actor(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> ActorContext | None:
    """Resolve the bearer token to an actor.

    A missing, invalid or expired token, an unknown user and an inactive user
    all resolve to ``None``; the workflow layer turns that into a 401.
    """
    if credentials is None:
        return None

    payload = decode_access_token(credentials.credentials)
    if not payload:
        logger.info("actor_token_rejected", path=request.url.path)
        return None

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        return None

    user = await db.get(User, user_id)
    client = request_metadata_from_headers(request.headers, request.client.host if request.client else None)
    return ActorContext.from_user(
        user,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
        request_id=get_request_id() or None,
    )
