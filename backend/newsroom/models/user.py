"""
Newsroom - User Model
=====================
Newsroom accounts with a single closed role.
"""

import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, String

from newsroom.core.database import Base, utcnow


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    AUTHOR = "AUTHOR"


PRIVILEGED_ROLES = frozenset({UserRole.ADMIN, UserRole.EDITOR})


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Identity
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)

    # Role
    role = Column(Enum(UserRole, name="user_role"), nullable=False, default=UserRole.AUTHOR, index=True)

    # Status
    is_active = Column(Boolean, nullable=False, default=True)

    # Metadata
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"
