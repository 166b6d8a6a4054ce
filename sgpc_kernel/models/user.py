"""
Module: sgpc_kernel.models.user
Responsibility: ORM persistence for the subset of user data the core needs:
    identity, display name and whether the account may act.  Requesters and
    approvers of material requests are resolved against this table.
Architecture position: Kernel > Models.  May import from db/base.py only.

Failure modes:
    - IntegrityError on duplicate email (uq_user_email constraint).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Self
from uuid import UUID

from sqlalchemy import Boolean, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from sgpc_kernel.db.base import TrackedBase


@dataclass(frozen=True)
class UserInfo:
    """Read-only view of a directory user."""

    id: UUID
    full_name: str
    email: str
    is_active: bool


class UserModel(TrackedBase):
    """A person who can request or approve materials."""

    __tablename__ = "users"

    __table_args__ = (
        UniqueConstraint("email", name="uq_user_email"),
    )

    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    @classmethod
    def create(cls, full_name: str, email: str, at: datetime) -> Self:
        return cls(
            full_name=full_name,
            email=email,
            is_active=True,
            created_at=at,
            updated_at=at,
        )

    def to_dto(self) -> UserInfo:
        return UserInfo(
            id=self.id,
            full_name=self.full_name,
            email=self.email,
            is_active=self.is_active,
        )

    def __repr__(self) -> str:
        return f"<UserModel {self.email}>"
