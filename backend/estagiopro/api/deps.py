"""Shared API dependencies."""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from estagiopro.config import get_settings
from estagiopro.database import get_db
from estagiopro.services.errors import EngineError

__all__ = ["get_db", "get_current_actor", "http_error"]

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Opaque id of the caller, from the ``sub`` claim of a bearer access token.

    Tokens are issued by the external auth service. The id is only written to
    audit fields; lifecycle rules never look at who the caller is.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    settings = get_settings()
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("type", "access") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
        )

    actor_id: str | None = payload.get("sub")
    if not actor_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )
    return actor_id


def http_error(exc: EngineError) -> HTTPException:
    """Translate a service error into the matching HTTP error."""
    return HTTPException(status_code=exc.status_code, detail=exc.message)
