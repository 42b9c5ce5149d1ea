"""Auth package: bearer token verification and FastAPI dependencies."""

from esg_tracker.auth.dependencies import get_current_user
from esg_tracker.auth.tokens import verify_access_token

__all__ = [
    "get_current_user",
    "verify_access_token",
]
