from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, enum_values, utcnow


class JobStatusEnum(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class Job(Base):
    __tablename__ = "jobs"
    __table_args__ = (
        Index("ix_jobs_status", "status"),
        Index("ix_jobs_customer_id", "customer_id"),
        Index("ix_jobs_vehicle_id", "vehicle_id"),
        Index("ix_jobs_assigned_employee", "assigned_employee"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id"), nullable=False)
    vehicle_id: Mapped[int] = mapped_column(ForeignKey("vehicles.id"), nullable=False)
    assigned_employee: Mapped[int] = mapped_column(
        ForeignKey("profiles.id"), nullable=False
    )
    description: Mapped[str] = mapped_column(String(1000), nullable=False)
    cost: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )
    status: Mapped[JobStatusEnum] = mapped_column(
        SAEnum(
            JobStatusEnum,
            native_enum=False,
            create_constraint=False,
            values_callable=enum_values,
        ),
        nullable=False,
        default=JobStatusEnum.PENDING,
    )
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )
    customer: Mapped["Customer"] = relationship("Customer")
    vehicle: Mapped["Vehicle"] = relationship("Vehicle")
    invoice: Mapped["Invoice | None"] = relationship(
        "Invoice", back_populates="job", uselist=False
    )
