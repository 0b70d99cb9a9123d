"""API token model."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.mixins import TimestampMixin, uuid_column


class ApiToken(TimestampMixin, Base):
    """Bearer token bound to one organization member."""

    __tablename__ = "api_tokens"
    __table_args__ = (
        Index("ix_api_tokens_lookup", "token_lookup"),
        UniqueConstraint("org_id", "name", name="uq_api_tokens_org_name"),
    )

    id: Mapped[uuid.UUID] = uuid_column()
    org_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("organizations.id"))
    member_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organization_members.id")
    )
    name: Mapped[str] = mapped_column(String(255))
    token_hash: Mapped[str] = mapped_column(String(512))
    token_lookup: Mapped[str] = mapped_column(String(64))
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    organization = relationship("Organization", back_populates="api_tokens")
    member = relationship("OrganizationMember", back_populates="api_tokens")
