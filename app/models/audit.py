"""Secret access event model."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.mixins import utcnow, uuid_column


class SecretAccessLog(Base):
    """Append-only access event.

    ``secret_name`` and ``secret_owner_id`` are snapshots so the trail stays
    readable after the secret row is hard-deleted.
    """

    __tablename__ = "secret_access_logs"
    __table_args__ = (
        Index("ix_secret_access_logs_secret_id", "secret_id"),
        Index("ix_secret_access_logs_accessed_at", "accessed_at"),
    )

    id: Mapped[uuid.UUID] = uuid_column()
    org_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("organizations.id"))
    secret_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("secrets.id", ondelete="SET NULL"), nullable=True
    )
    secret_name: Mapped[str | None] = mapped_column(String(255))
    secret_owner_id: Mapped[str | None] = mapped_column(String(255))
    user_id: Mapped[str | None] = mapped_column(String(255))
    action: Mapped[str] = mapped_column(String(20))
    ip_address: Mapped[str | None] = mapped_column(String(64))
    user_agent: Mapped[str | None] = mapped_column(String(512))
    accessed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    secret = relationship("Secret", back_populates="access_logs")
