"""Client-facing user representation."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from blooms.models.user import User, UserRole


class UserView(BaseModel):
    """User fields safe to return to clients. The password digest is never part of it."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: UserRole
    phone: str | None = None
    address: str | None = None
    profile_image_url: str | None = None
    is_active: bool
    created_at: datetime | None = None
    last_login: datetime | None = None


def to_user_view(user: User) -> dict:
    return UserView.model_validate(user).model_dump(mode="json")
