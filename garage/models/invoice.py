from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, enum_values, utcnow


class InvoiceStatusEnum(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class EditRequestStateEnum(str, Enum):
    NONE = "none"
    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"


class Invoice(Base):
    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    # unique: one invoice per job
    job_id: Mapped[int] = mapped_column(
        ForeignKey("jobs.id"), unique=True, nullable=False
    )
    invoice_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    status: Mapped[InvoiceStatusEnum] = mapped_column(
        SAEnum(
            InvoiceStatusEnum,
            native_enum=False,
            create_constraint=False,
            values_callable=enum_values,
        ),
        nullable=False,
        default=InvoiceStatusEnum.PENDING,
    )
    edit_request: Mapped[EditRequestStateEnum] = mapped_column(
        SAEnum(
            EditRequestStateEnum,
            native_enum=False,
            create_constraint=False,
            values_callable=enum_values,
        ),
        nullable=False,
        default=EditRequestStateEnum.NONE,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    job: Mapped["Job"] = relationship("Job", back_populates="invoice")
