"""JWT authentication middleware."""

from typing import Annotated

import jwt
import structlog
from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from statuspage.core.exceptions import AuthenticationError
from statuspage.core.interfaces import StatusStore
from statuspage.core.rbac import CallerContext
from statuspage.entrypoints.api.deps import Settings, get_settings, get_store

logger = structlog.get_logger()

# Use Bearer token authentication
bearer_scheme = HTTPBearer(auto_error=False)


def decode_subject(token: str, settings: Settings) -> str:
    """Decode a bearer token and return its ``sub`` claim.

    Raises:
        AuthenticationError: If the token is expired, malformed or has no subject.
    """
    try:
        payload = jwt.decode(
            token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired") from None
    except jwt.InvalidTokenError as e:
        logger.warning("jwt_validation_failed", error=str(e))
        raise AuthenticationError("Invalid token") from None

    subject = payload.get("sub")
    if not subject:
        raise AuthenticationError("Invalid token")
    return str(subject)


async def verify_jwt(
    request: Request,
    store: Annotated[StatusStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),  # noqa: B008
) -> CallerContext:
    """Verify the bearer token and resolve the caller.

    Raises:
        AuthenticationError: 401 if the token is missing, invalid, or names
            a user that no longer exists.
    """
    if not credentials:
        raise AuthenticationError("Authentication required")

    user_id = decode_subject(credentials.credentials, settings)
    user = await store.get_user(user_id)
    if user is None:
        logger.warning("jwt_unknown_user", user_id=user_id)
        raise AuthenticationError("User not found")

    context = CallerContext(
        user_id=user.id,
        organization_id=user.organization_id,
        role=user.role,
        permissions=user.permissions,
        is_org_admin=user.is_org_admin,
    )

    # Store in request state for downstream use
    request.state.caller = context

    logger.debug("jwt_verified", user_id=user.id, organization_id=user.organization_id)
    return context


CallerDep = Annotated[CallerContext, Depends(verify_jwt)]
