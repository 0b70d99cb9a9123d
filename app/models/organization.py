"""Organization and membership models."""

import uuid

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.mixins import TimestampMixin, uuid_column


class Organization(TimestampMixin, Base):
    """Owning organization with its subscription tier."""

    __tablename__ = "organizations"

    id: Mapped[uuid.UUID] = uuid_column()
    name: Mapped[str] = mapped_column(String(255), unique=True)
    tier: Mapped[str] = mapped_column(String(20), default="free")

    members = relationship("OrganizationMember", back_populates="organization")
    api_tokens = relationship("ApiToken", back_populates="organization")
    secrets = relationship("Secret", back_populates="organization")


class OrganizationMember(TimestampMixin, Base):
    """User membership and role inside an organization."""

    __tablename__ = "organization_members"
    __table_args__ = (
        UniqueConstraint("org_id", "user_id", name="uq_organization_members_user"),
    )

    id: Mapped[uuid.UUID] = uuid_column()
    org_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("organizations.id"))
    user_id: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(20), default="member")

    organization = relationship("Organization", back_populates="members")
    api_tokens = relationship("ApiToken", back_populates="member")
