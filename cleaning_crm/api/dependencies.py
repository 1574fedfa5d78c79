"""
API dependencies for FastAPI dependency injection.

Provides the database session and the auth gate. The principal is resolved
per request from the bearer token and handed to services explicitly.
"""
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from cleaning_crm.api.middleware.error_handler import UnauthorizedException
from cleaning_crm.lib.db import get_db as get_db_session
from cleaning_crm.lib.jwt import get_principal_from_token
from cleaning_crm.lib.logging import get_logger, set_principal
from cleaning_crm.lib.metrics import get_metrics_collector


logger = get_logger(__name__)

# Re-export get_db for convenience
get_db = get_db_session


# HTTP Bearer token security scheme; documented as BearerAuth in OpenAPI
security = HTTPBearer(auto_error=False, scheme_name="BearerAuth", bearerFormat="JWT")


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """
    Resolve the caller's principal id.

    Returns:
        The token subject, or None when there is no usable token
    """
    if credentials is None:
        get_metrics_collector().increment_auth_failures("missing_token")
        return None

    principal = get_principal_from_token(credentials.credentials)
    if principal is None:
        get_metrics_collector().increment_auth_failures("invalid_token")
        logger.info("Rejected bearer token")
    return principal


async def require_principal(
    principal: Optional[str] = Depends(get_current_principal),
) -> str:
    """
    Dependency for routes that need an authenticated caller.

    Raises:
        UnauthorizedException: 401 if no principal could be established
    """
    if not principal:
        raise UnauthorizedException()

    # Later log records of this request carry the caller
    set_principal(principal)
    return principal
