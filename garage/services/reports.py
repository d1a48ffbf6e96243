from dataclasses import dataclass

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from ..auth import Principal, Role, authorize
from ..errors import NotFoundError, ValidationError
from ..models import Customer, Invoice, Job, JobStatusEnum, Profile, Vehicle
from . import records


@dataclass
class DashboardStats:
    total_customers: int
    total_vehicles: int
    pending_jobs: int
    completed_jobs: int
    active_employees: int


def list_jobs(
    db: Session,
    principal: Principal | None,
    *,
    status: str | None = None,
    q: str | None = None,
) -> list[Job]:
    """Admins see every job; employees only the jobs assigned to them."""
    actor = authorize(principal)

    filters = []
    if not actor.is_admin:
        filters.append(Job.assigned_employee == actor.id)
    if status:
        try:
            filters.append(Job.status == JobStatusEnum(status))
        except ValueError:
            raise ValidationError(f"Unknown job status: {status}.") from None
    if q:
        like = f"%{q.lower()}%"
        filters.append(
            or_(
                func.lower(Job.description).like(like),
                func.lower(Customer.name).like(like),
                func.lower(Vehicle.registration).like(like),
                func.lower(Vehicle.model).like(like),
            )
        )

    query = (
        select(Job)
        .join(Customer, Job.customer_id == Customer.id)
        .join(Vehicle, Job.vehicle_id == Vehicle.id)
        .options(
            selectinload(Job.customer),
            selectinload(Job.vehicle),
            selectinload(Job.invoice),
        )
        .where(*filters)
        .order_by(Job.created_at.desc(), Job.id.desc())
    )
    return list(db.execute(query).scalars().all())


def dashboard_stats(db: Session, principal: Principal | None) -> DashboardStats:
    authorize(principal, Role.ADMIN)

    def count(model, *filters) -> int:
        return db.execute(
            select(func.count()).select_from(model).where(*filters)
        ).scalar() or 0

    return DashboardStats(
        total_customers=count(Customer),
        total_vehicles=count(Vehicle),
        pending_jobs=count(Job, Job.status == JobStatusEnum.PENDING),
        completed_jobs=count(Job, Job.status == JobStatusEnum.COMPLETED),
        active_employees=count(Profile, Profile.is_active.is_(True)),
    )


@dataclass
class InvoiceView:
    invoice: Invoice
    job: Job
    customer: Customer
    vehicle: Vehicle


def invoice_view(
    db: Session,
    principal: Principal | None,
    *,
    invoice_id: int | None = None,
    job_id: int | None = None,
) -> InvoiceView:
    """Load an invoice by its id or by its job, with the records it bills."""
    authorize(principal)
    if invoice_id is not None:
        invoice = records.get_invoice(db, invoice_id)
    else:
        job = records.get_job(db, job_id)
        invoice = records.get_invoice_by_job(db, job.id)
        if invoice is None:
            raise NotFoundError(f"Job {job.id} has not been invoiced.")
    job = records.get_job(db, invoice.job_id)
    return InvoiceView(
        invoice=invoice,
        job=job,
        customer=records.get_customer(db, job.customer_id),
        vehicle=records.get_vehicle(db, job.vehicle_id),
    )
