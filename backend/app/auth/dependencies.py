"""
Authentication dependencies for FastAPI routes.

The signed-in user comes from a bearer token or the ``access_token``
cookie. Requests without either act as the anonymous user, so every
handler receives a RequestContext.
"""

from fastapi import Cookie, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from core.context import RequestContext
from core.db import get_db
from core.logging import bind_context
from core.models import User
from core.repositories import UserRepository

from .jwt import decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token", auto_error=False)


def get_token_from_request(
    token_header: str | None = Depends(oauth2_scheme),
    access_token_cookie: str | None = Cookie(None, alias="access_token"),
) -> str | None:
    """Authorization header first, then the cookie; None when neither is sent."""
    return token_header or access_token_cookie or None


def get_current_user(
    token: str | None = Depends(get_token_from_request),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the user behind the request.

    No token means the anonymous user. A token that does not decode, or
    that names a missing user, is rejected with 401.
    """
    if token is None:
        return User.anonymous()

    try:
        payload = decode_access_token(token)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    user_id = payload.get("sub")
    user = UserRepository(db).get_by_id(int(user_id)) if user_id and str(user_id).isdigit() else None
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


async def get_request_context(
    request: Request,
    user: User = Depends(get_current_user),
) -> RequestContext:
    """
    Bundle the user, their capabilities and the request id.

    Runs on the event loop so the bound log context is inherited by the
    handler that follows.
    """
    owner = request.path_params.get("owner")
    project_name = request.path_params.get("project_name")
    bind_context(
        user_id=None if user.is_anonymous else user.id,
        project=f"{owner}/{project_name}" if owner and project_name else None,
    )
    return RequestContext.for_user(user, getattr(request.state, "request_id", None))
