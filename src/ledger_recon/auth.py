"""Bearer-token authentication and rate limiting for the reconciliation API."""

import secrets
import logging

from fastapi import HTTPException, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from slowapi import Limiter
from slowapi.util import get_remote_address

from .settings import get_api_key

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(description="Value of the API_KEY environment variable")

# Limits are declared per endpoint; see settings.get_rate_limit
limiter = Limiter(key_func=get_remote_address)


async def verify_api_key(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Security(bearer_scheme),
) -> str:
    """Check the bearer token against API_KEY.

    Raises:
        HTTPException: 500 when API_KEY is unset, 401 when the token differs.
    """
    expected_key = get_api_key()
    if not expected_key:
        logger.error("API_KEY environment variable is not configured")
        raise HTTPException(status_code=500, detail="Server configuration error")

    if not secrets.compare_digest(credentials.credentials.encode(), expected_key.encode()):
        logger.warning(f"Rejected API key from {get_remote_address(request)} on {request.url.path}")
        raise HTTPException(status_code=401, detail="Invalid API key")

    return credentials.credentials
