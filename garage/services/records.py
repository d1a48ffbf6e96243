"""Data access for jobs, invoices, customers, vehicles and profiles.

Writes flush but never commit; callers own the transaction through
:func:`transaction`.
"""

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import logging

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import (
    ConflictError,
    LifecycleError,
    NotFoundError,
    PartialFailureError,
    ValidationError,
)
from ..models import (
    Customer,
    Invoice,
    InvoiceSequence,
    Job,
    JobStatusEnum,
    Profile,
    Vehicle,
)
from ..models.base import utcnow

logger = logging.getLogger(__name__)

JOB_FIELDS = {
    "customer_id",
    "vehicle_id",
    "assigned_employee",
    "description",
    "cost",
    "status",
    "notes",
}
INVOICE_FIELDS = {"invoice_number", "status", "edit_request"}
CUSTOMER_FIELDS = {"name", "phone", "email"}
VEHICLE_FIELDS = {"registration", "model", "type", "customer_id"}

# Largest value a Numeric(12, 2) column holds.
MAX_COST = Decimal("9999999999.99")


@contextmanager
def transaction(db: Session, action: str) -> Iterator[Session]:
    """Commit on success; roll back on any error.

    Uniqueness violations surface as ``ConflictError``. A failed rollback
    means the writes may be partially visible and raises
    ``PartialFailureError``.
    """
    try:
        yield db
        db.commit()
    except LifecycleError:
        _rollback(db, action)
        raise
    except IntegrityError as exc:
        _rollback(db, action)
        logger.warning("%s rejected by constraint: %s", action, exc.orig)
        raise ConflictError(f"{action} conflicts with an existing record.") from exc
    except Exception:
        logger.exception("%s failed", action)
        _rollback(db, action)
        raise


def _rollback(db: Session, action: str) -> None:
    try:
        db.rollback()
    except SQLAlchemyError as exc:
        logger.exception("Rollback failed for %s", action)
        raise PartialFailureError(
            f"{action} may have been partially applied."
        ) from exc


def _decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def money(value) -> Decimal:
    return _decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def parse_cost(value) -> Decimal:
    if value is None or isinstance(value, bool):
        raise ValidationError("Cost must be a non-negative number.")
    try:
        amount = Decimal(str(value).strip())
        if not amount.is_finite():
            raise InvalidOperation(value)
        amount = money(amount)
    except (InvalidOperation, ValueError):
        raise ValidationError("Cost must be a non-negative number.") from None
    if amount < 0:
        raise ValidationError("Cost must be a non-negative number.")
    if amount > MAX_COST:
        raise ValidationError(f"Cost cannot exceed {MAX_COST}.")
    return amount


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _require(value: str | None, label: str) -> str:
    cleaned = _clean(value)
    if not cleaned:
        raise ValidationError(f"{label} is required.")
    return cleaned


def _check_fields(fields: Mapping, allowed: set[str], label: str) -> None:
    unknown = sorted(set(fields) - allowed)
    if unknown:
        raise ValidationError(f"Unknown {label} fields: {', '.join(unknown)}.")


def _apply(record, fields: Mapping, allowed: set[str], label: str) -> None:
    _check_fields(fields, allowed, label)
    for key, value in fields.items():
        setattr(record, key, value)


# Jobs


def get_job(db: Session, job_id: int) -> Job:
    job = db.get(Job, job_id)
    if job is None:
        raise NotFoundError(f"Job {job_id} not found.")
    return job


def create_job(db: Session, fields: Mapping) -> Job:
    job = Job(cost=Decimal("0.00"), status=JobStatusEnum.PENDING)
    _apply(job, fields, JOB_FIELDS, "job")
    db.add(job)
    db.flush()
    return job


def update_job(db: Session, job_id: int, fields: Mapping) -> Job:
    job = get_job(db, job_id)
    _apply(job, fields, JOB_FIELDS, "job")
    db.flush()
    return job


# Invoices


def get_invoice(db: Session, invoice_id: int) -> Invoice:
    invoice = db.get(Invoice, invoice_id)
    if invoice is None:
        raise NotFoundError(f"Invoice {invoice_id} not found.")
    return invoice


def get_invoice_by_job(db: Session, job_id: int) -> Invoice | None:
    return db.execute(
        select(Invoice).where(Invoice.job_id == job_id)
    ).scalar_one_or_none()


def create_invoice(db: Session, fields: Mapping) -> Invoice:
    invoice = Invoice()
    _apply(invoice, fields, INVOICE_FIELDS | {"job_id"}, "invoice")
    db.add(invoice)
    db.flush()
    return invoice


def update_invoice(db: Session, invoice_id: int, fields: Mapping) -> Invoice:
    invoice = get_invoice(db, invoice_id)
    _apply(invoice, fields, INVOICE_FIELDS, "invoice")
    db.flush()
    return invoice


def generate_invoice_number(db: Session, now: datetime | None = None) -> str:
    current_time = now or utcnow()
    year = current_time.year
    sequence = db.get(InvoiceSequence, year, with_for_update=True)
    if sequence is None:
        sequence = InvoiceSequence(year=year, last_number=0, updated_at=current_time)
        db.add(sequence)
    sequence.last_number += 1
    sequence.updated_at = current_time
    db.flush()

    return f"INV-{str(year)[2:]}-{sequence.last_number:05d}"


# Customers


def get_customer(db: Session, customer_id: int) -> Customer:
    customer = db.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError(f"Customer {customer_id} not found.")
    return customer


def create_customer(db: Session, fields: Mapping) -> Customer:
    _check_fields(fields, CUSTOMER_FIELDS | {"created_by"}, "customer")
    customer = Customer(
        name=_require(fields.get("name"), "Customer name"),
        phone=_clean(fields.get("phone")),
        email=_clean(fields.get("email")),
        created_by=fields.get("created_by"),
    )
    db.add(customer)
    db.flush()
    return customer


def update_customer(db: Session, customer_id: int, fields: Mapping) -> Customer:
    customer = get_customer(db, customer_id)
    cleaned = dict(fields)
    if "name" in cleaned:
        cleaned["name"] = _require(cleaned["name"], "Customer name")
    for key in ("phone", "email"):
        if key in cleaned:
            cleaned[key] = _clean(cleaned[key])
    _apply(customer, cleaned, CUSTOMER_FIELDS, "customer")
    db.flush()
    return customer


def list_customers(db: Session, q: str | None = None) -> list[Customer]:
    query = select(Customer).order_by(Customer.name)
    if q:
        like = f"%{q.lower()}%"
        query = query.where(
            or_(
                func.lower(Customer.name).like(like),
                func.lower(Customer.phone).like(like),
                func.lower(Customer.email).like(like),
            )
        )
    return list(db.execute(query).scalars().all())


# Vehicles


def get_vehicle(db: Session, vehicle_id: int) -> Vehicle:
    vehicle = db.get(Vehicle, vehicle_id)
    if vehicle is None:
        raise NotFoundError(f"Vehicle {vehicle_id} not found.")
    return vehicle


def create_vehicle(db: Session, fields: Mapping) -> Vehicle:
    _check_fields(fields, VEHICLE_FIELDS | {"created_by"}, "vehicle")
    customer = get_customer(db, fields.get("customer_id"))
    vehicle = Vehicle(
        customer_id=customer.id,
        registration=_require(fields.get("registration"), "Registration").upper(),
        model=_require(fields.get("model"), "Model"),
        type=_require(fields.get("type"), "Vehicle type"),
        created_by=fields.get("created_by"),
    )
    db.add(vehicle)
    db.flush()
    return vehicle


def update_vehicle(db: Session, vehicle_id: int, fields: Mapping) -> Vehicle:
    vehicle = get_vehicle(db, vehicle_id)
    cleaned = dict(fields)
    for key, label in (
        ("registration", "Registration"),
        ("model", "Model"),
        ("type", "Vehicle type"),
    ):
        if key in cleaned:
            cleaned[key] = _require(cleaned[key], label)
    if "registration" in cleaned:
        cleaned["registration"] = cleaned["registration"].upper()
    if "customer_id" in cleaned:
        cleaned["customer_id"] = get_customer(db, cleaned["customer_id"]).id
    _apply(vehicle, cleaned, VEHICLE_FIELDS, "vehicle")
    db.flush()
    return vehicle


def list_vehicles(db: Session, customer_id: int) -> list[Vehicle]:
    return list(
        db.execute(
            select(Vehicle)
            .where(Vehicle.customer_id == customer_id)
            .order_by(Vehicle.registration)
        )
        .scalars()
        .all()
    )


# Profiles


def get_profile(db: Session, profile_id: int) -> Profile:
    profile = db.get(Profile, profile_id)
    if profile is None:
        raise NotFoundError(f"Profile {profile_id} not found.")
    return profile
