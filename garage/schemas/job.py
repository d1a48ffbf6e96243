from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from ..models import EditRequestStateEnum, InvoiceStatusEnum, JobStatusEnum
from .customer import CustomerRead, VehicleRead


class JobCreate(BaseModel):
    customer_id: int | None = None
    vehicle_id: int | None = None
    description: str | None = None
    notes: str | None = None
    employee_id: int | None = None


class InvoiceCreate(BaseModel):
    final_description: str | None = None
    # Validated by the lifecycle so bad values surface as a ValidationError.
    cost: Decimal | float | str | None = None
    notes: str | None = None


class InvoiceSummary(BaseModel):
    id: int
    invoice_number: str
    status: InvoiceStatusEnum
    edit_request: EditRequestStateEnum

    model_config = {"from_attributes": True}


class JobRead(BaseModel):
    id: int
    customer_id: int
    vehicle_id: int
    assigned_employee: int
    description: str
    cost: Decimal
    status: JobStatusEnum
    notes: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class JobListRow(JobRead):
    customer: CustomerRead
    vehicle: VehicleRead
    invoice: InvoiceSummary | None = None


class CustomerDetailRead(BaseModel):
    customer: CustomerRead
    vehicles: list[VehicleRead]
    jobs: list[JobRead]

    model_config = {"from_attributes": True}
