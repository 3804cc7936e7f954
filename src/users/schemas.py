"""
Schemas for Users module
"""
from datetime import datetime
from typing import Optional

from src.models import CustomModel
from src.users.models import UserRole


class UserResponse(CustomModel):
    """Public view of a user; never carries the password hash."""
    id: str
    email: str
    username: str
    role: UserRole
    avatar_url: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
