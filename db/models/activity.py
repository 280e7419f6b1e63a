from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base
from db.utils import JSONType, UUIDType, utcnow


class Activity(Base):
    __tablename__ = "activities"
    __table_args__ = (
        Index("idx_activities_created", "created_at"),
        Index("idx_activities_type_created", "type", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(),
        primary_key=True,
        default=uuid.uuid4,
    )

    session_id: Mapped[str | None] = mapped_column(String(128), nullable=True)

    type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="completed")

    tx_hash: Mapped[str | None] = mapped_column(String(66), nullable=True)
    ens_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    amount: Mapped[str | None] = mapped_column(String(64), nullable=True)

    metadata_: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata",
        JSONType(),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
