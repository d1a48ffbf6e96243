from datetime import datetime
from enum import Enum

from sqlalchemy import (
    JSON,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, enum_values, utcnow


class EditRequestStatusEnum(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class EditRequest(Base):
    __tablename__ = "edit_requests"
    __table_args__ = (
        Index("ix_edit_requests_record", "table_name", "record_id"),
        Index("ix_edit_requests_status", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    table_name: Mapped[str] = mapped_column(String(50), nullable=False)
    record_id: Mapped[int] = mapped_column(Integer, nullable=False)
    employee_id: Mapped[int] = mapped_column(ForeignKey("profiles.id"), nullable=False)
    reason: Mapped[str | None] = mapped_column(String(500))
    requested_changes: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[EditRequestStatusEnum] = mapped_column(
        SAEnum(
            EditRequestStatusEnum,
            native_enum=False,
            create_constraint=False,
            values_callable=enum_values,
        ),
        nullable=False,
        default=EditRequestStatusEnum.PENDING,
    )
    reviewed_by: Mapped[int | None] = mapped_column(ForeignKey("profiles.id"))
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
