"""Profile Repository - profiles keyed by identity provider user id."""

from typing import Any, Dict, Optional

from pymongo import ReturnDocument

from app.entities.profile import Profile
from app.utils.datetime import utc_now

from .base import BaseRepository


class ProfileRepository(BaseRepository[Profile]):
    """Repository for the profiles collection."""

    def __init__(self, db):
        super().__init__(db, "profiles", Profile)

    def get(self, user_id: str) -> Optional[Profile]:
        # Profile ids are provider ids, not ObjectIds
        return self.find_one({"_id": user_id})

    def ensure_profile(
        self,
        user_id: str,
        full_name: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> Profile:
        """Create the profile if it does not exist yet; existing values are kept."""
        now = utc_now()
        doc = self.collection.find_one_and_update(
            {"_id": user_id},
            {
                "$setOnInsert": {
                    "full_name": full_name,
                    "avatar_url": avatar_url,
                    "created_at": now,
                    "updated_at": now,
                }
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return Profile.model_validate(doc)

    def update_profile(self, user_id: str, updates: Dict[str, Any]) -> Optional[Profile]:
        return self.find_one_and_update({"_id": user_id}, updates)
