"""Auth schemas: CurrentUser."""

import uuid

from pydantic import BaseModel


class CurrentUser(BaseModel):
    """Caller identity resolved from the bearer token."""

    user_id: uuid.UUID
    email: str = ""
