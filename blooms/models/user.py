"""User model definitions."""

import enum
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, String, Text
from blooms.database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the DateTime columns round-trip."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class UserRole(str, enum.Enum):
    """Trust tiers, lowest first."""

    customer = "customer"
    admin = "admin"
    superadmin = "superadmin"

    @property
    def rank(self) -> int:
        return list(UserRole).index(self)

    def at_least(self, other: "UserRole") -> bool:
        return self.rank >= other.rank


class User(Base):
    """Represents a shop account (customer or staff)."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # bcrypt digest
    role = Column(
        Enum(UserRole, name="user_role", native_enum=False),
        nullable=False,
        default=UserRole.customer,
    )
    phone = Column(String(20))
    address = Column(Text)
    profile_image_url = Column(String(255))
    is_active = Column(Boolean, nullable=False, default=True)

    # Assigned by UserStore.save, not by the ORM.
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime)
    last_login = Column(DateTime)
