"""Encrypted secret model."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.mixins import TimestampMixin, UpdatedAtMixin, uuid_column


class Secret(TimestampMixin, UpdatedAtMixin, Base):
    """Client-encrypted secret and its access counters.

    Only the envelope is stored. The encryption key never reaches the server.
    """

    __tablename__ = "secrets"
    __table_args__ = (
        Index("ix_secrets_org_id", "org_id"),
        Index("ix_secrets_created_by", "created_by"),
    )

    id: Mapped[uuid.UUID] = uuid_column()
    org_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("organizations.id"))
    created_by: Mapped[str] = mapped_column(String(255))
    name: Mapped[str] = mapped_column(String(255))
    ciphertext: Mapped[str] = mapped_column(Text)
    iv: Mapped[str] = mapped_column(String(32))
    salt: Mapped[str | None] = mapped_column(String(32))
    key_hash: Mapped[str] = mapped_column(String(64))
    view_count: Mapped[int] = mapped_column(Integer, default=0)
    max_views: Mapped[int | None] = mapped_column(Integer)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    burn_on_read: Mapped[bool] = mapped_column(Boolean, default=False)
    deleted: Mapped[bool] = mapped_column(Boolean, default=False)
    state: Mapped[str] = mapped_column(String(32), default="active")
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    organization = relationship("Organization", back_populates="secrets")
    access_logs = relationship("SecretAccessLog", back_populates="secret")

    @property
    def requires_password(self) -> bool:
        """Return whether the key is derived from a viewer password."""
        return self.salt is not None
