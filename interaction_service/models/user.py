from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UserAccount(BaseModel):
    """Identity record owned by the auth collaborator; read-only here."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str
    display_name: Optional[str] = None
    photos: List[str] = Field(default_factory=list)
    is_premium: bool = False
    is_active: bool = True
    last_seen_at: Optional[datetime] = None

    @property
    def primary_photo(self) -> Optional[str]:
        for photo in self.photos:
            if isinstance(photo, str) and photo.strip():
                return photo.strip()
        return None


class DiscoveryCandidate(BaseModel):
    user_id: str
    display_name: Optional[str] = None
    photo: Optional[str] = None
    is_premium: bool = False
    last_seen_at: Optional[datetime] = None


class DiscoveryResponse(BaseModel):
    candidates: List[DiscoveryCandidate] = Field(default_factory=list)
    offset: int = 0
    next_offset: int = 0


__all__ = ["UserAccount", "DiscoveryCandidate", "DiscoveryResponse"]
