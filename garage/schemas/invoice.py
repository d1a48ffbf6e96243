from datetime import datetime
from typing import Any

from pydantic import BaseModel

from ..models import EditRequestStateEnum, EditRequestStatusEnum, InvoiceStatusEnum
from .customer import CustomerRead, VehicleRead
from .job import JobRead


class InvoiceRead(BaseModel):
    id: int
    job_id: int
    invoice_number: str
    status: InvoiceStatusEnum
    edit_request: EditRequestStateEnum
    created_at: datetime

    model_config = {"from_attributes": True}


class InvoiceDetail(BaseModel):
    invoice: InvoiceRead
    job: JobRead
    customer: CustomerRead
    vehicle: VehicleRead

    model_config = {"from_attributes": True}


class EditRequestCreate(BaseModel):
    reason: str | None = None


class EditReview(BaseModel):
    decision: str


class InvoiceEdit(BaseModel):
    """Dotted field names, e.g. ``{"job.cost": "75.00", "vehicle.model": "Axio"}``."""

    fields: dict[str, Any]


class EditRequestRead(BaseModel):
    id: int
    table_name: str
    record_id: int
    employee_id: int
    reason: str | None
    requested_changes: dict[str, Any]
    status: EditRequestStatusEnum
    reviewed_by: int | None
    reviewed_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}
