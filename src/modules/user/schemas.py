# src/user/schemas.py

from typing import Optional
from uuid import UUID
from pydantic import BaseModel

from src.models.models import UserRole

class UserSummary(BaseModel):
    """Author details shown next to discussions, comments and replies."""
    id: UUID
    username: str
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    role: UserRole
    profile_picture: Optional[str] = None

    class Config:
        from_attributes = True
