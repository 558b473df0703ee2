"""
Profile Entity - local shadow of the identity provider's user record.

The document id is the identity provider's user id, so there is exactly one
profile per account.
"""

from typing import Optional

from pydantic import Field

from app.entities.base import BaseEntity


class Profile(BaseEntity):
    """User profile stored in the profiles collection."""

    id: str = Field(..., alias="_id", description="Identity provider user id")
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
