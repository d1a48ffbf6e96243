"""Job, invoice and invoice-edit transitions.

Every operation authorizes the acting principal before touching the
database and runs inside a single transaction.

Job:          pending -> completed (CreateInvoice or MarkJobCompleted)
edit_request: none -> requested -> approved -> none (employee apply)
                        requested -> rejected -> requested
"""

from collections.abc import Mapping
import logging

from sqlalchemy.orm import Session

from ..auth import Principal, Role, authorize
from ..errors import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from ..models import (
    EditRequestStateEnum,
    Invoice,
    InvoiceStatusEnum,
    Job,
    JobStatusEnum,
)
from . import audit, records

logger = logging.getLogger(__name__)

REQUESTABLE_STATES = {EditRequestStateEnum.NONE, EditRequestStateEnum.REJECTED}
REVIEW_DECISIONS = {
    "approved": EditRequestStateEnum.APPROVED,
    "rejected": EditRequestStateEnum.REJECTED,
}

# Editable fields grouped by the record they live on.
EDITABLE_FIELDS = {
    "job": {"description", "cost", "notes"},
    "customer": {"name", "phone", "email"},
    "vehicle": {"registration", "model", "type"},
    "invoice": {"status"},
}


def _status_value(value) -> str:
    if value is None:
        return ""
    return value.value if hasattr(value, "value") else str(value)


def _clean_text(value: str | None) -> str:
    return str(value).strip() if value is not None else ""


def create_job(
    db: Session,
    principal: Principal | None,
    *,
    customer_id: int | None,
    vehicle_id: int | None,
    description: str | None,
    notes: str | None = None,
    employee_id: int | None = None,
) -> Job:
    actor = authorize(principal)

    description = _clean_text(description)
    if not customer_id or not vehicle_id or not description:
        raise ValidationError("Customer, vehicle and job description are required.")
    # Employees always take the job themselves; only admins assign others.
    if employee_id and employee_id != actor.id and not actor.is_admin:
        raise AuthorizationError("Only admins can assign jobs to other employees.")

    with records.transaction(db, "Create job"):
        try:
            customer = records.get_customer(db, customer_id)
            vehicle = records.get_vehicle(db, vehicle_id)
            employee = records.get_profile(db, employee_id or actor.id)
        except NotFoundError as exc:
            raise ValidationError(exc.message) from exc
        if vehicle.customer_id != customer.id:
            raise ValidationError("Vehicle does not belong to the selected customer.")
        if not employee.is_active:
            raise ValidationError(f"Employee {employee.username} is deactivated.")

        job = records.create_job(
            db,
            {
                "customer_id": customer.id,
                "vehicle_id": vehicle.id,
                "assigned_employee": employee.id,
                "description": description,
                "notes": _clean_text(notes) or None,
            },
        )

    logger.info("Job %s created by %s", job.id, actor.username)
    return job


def create_invoice(
    db: Session,
    principal: Principal | None,
    *,
    job_id: int,
    final_description: str | None,
    cost,
    notes: str | None = None,
) -> Invoice:
    actor = authorize(principal)

    amount = records.parse_cost(cost)
    final_description = _clean_text(final_description)
    if not final_description:
        raise ValidationError("Job description is required.")

    with records.transaction(db, "Create invoice"):
        job = records.get_job(db, job_id)
        if records.get_invoice_by_job(db, job.id) is not None:
            raise ConflictError(f"Job {job.id} already has an invoice.")

        records.update_job(
            db,
            job.id,
            {
                "description": final_description,
                "cost": amount,
                "notes": _clean_text(notes) or None,
                "status": JobStatusEnum.COMPLETED,
            },
        )
        invoice = records.create_invoice(
            db,
            {
                "job_id": job.id,
                "invoice_number": records.generate_invoice_number(db),
                "status": InvoiceStatusEnum.PENDING,
                "edit_request": EditRequestStateEnum.NONE,
            },
        )

    logger.info(
        "Invoice %s created for job %s by %s",
        invoice.invoice_number,
        job_id,
        actor.username,
    )
    return invoice


def request_invoice_edit(
    db: Session,
    principal: Principal | None,
    *,
    invoice_id: int,
    reason: str | None = None,
) -> Invoice:
    actor = authorize(principal)

    with records.transaction(db, "Request invoice edit"):
        invoice = records.get_invoice(db, invoice_id)
        current = EditRequestStateEnum(_status_value(invoice.edit_request))
        if current not in REQUESTABLE_STATES:
            raise InvalidStateError(
                f"Cannot request an edit while the request is {current.value}."
            )
        records.update_invoice(
            db, invoice.id, {"edit_request": EditRequestStateEnum.REQUESTED}
        )
        audit.record_request(
            db, invoice_id=invoice.id, employee_id=actor.id, reason=reason
        )

    logger.info("Edit requested on invoice %s by %s", invoice_id, actor.username)
    return invoice


def review_invoice_edit(
    db: Session,
    principal: Principal | None,
    *,
    invoice_id: int,
    decision: str,
) -> Invoice:
    actor = authorize(principal, Role.ADMIN)

    new_state = REVIEW_DECISIONS.get(_status_value(decision))
    if new_state is None:
        raise ValidationError("Decision must be approved or rejected.")

    with records.transaction(db, "Review invoice edit"):
        invoice = records.get_invoice(db, invoice_id)
        current = EditRequestStateEnum(_status_value(invoice.edit_request))
        if current != EditRequestStateEnum.REQUESTED:
            raise InvalidStateError(
                f"No pending edit request; current state is {current.value}."
            )
        records.update_invoice(db, invoice.id, {"edit_request": new_state})
        audit.record_review(
            db, invoice_id=invoice.id, reviewer_id=actor.id, decision=new_state
        )

    logger.info(
        "Edit request on invoice %s %s by %s",
        invoice_id,
        new_state.value,
        actor.username,
    )
    return invoice


def _split_fields(fields: Mapping) -> dict[str, dict]:
    grouped: dict[str, dict] = {key: {} for key in EDITABLE_FIELDS}
    unknown: list[str] = []
    for name, value in fields.items():
        target, _, column = str(name).partition(".")
        if column and column in EDITABLE_FIELDS.get(target, set()):
            grouped[target][column] = value
        else:
            unknown.append(str(name))
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}.")
    if not any(grouped.values()):
        raise ValidationError("No fields to update.")
    return grouped


def _normalize_job_changes(changes: dict) -> dict:
    if "cost" in changes:
        changes["cost"] = records.parse_cost(changes["cost"])
    if "description" in changes:
        changes["description"] = _clean_text(changes["description"])
        if not changes["description"]:
            raise ValidationError("Job description is required.")
    if "notes" in changes:
        changes["notes"] = _clean_text(changes["notes"]) or None
    return changes


def _normalize_invoice_changes(changes: dict) -> dict:
    if "status" in changes:
        try:
            changes["status"] = InvoiceStatusEnum(_status_value(changes["status"]))
        except ValueError:
            raise ValidationError("Invoice status must be pending or completed.") from None
    return changes


def apply_invoice_edit(
    db: Session,
    principal: Principal | None,
    *,
    invoice_id: int,
    fields: Mapping,
) -> Invoice:
    """Apply ``fields`` to the invoice and the job, customer and vehicle behind it.

    Field names are dotted, e.g. ``job.cost`` or ``customer.phone``. Admins may
    edit at any time; employees need an approved edit request, which this
    call consumes.
    """
    actor = authorize(principal)
    grouped = _split_fields(fields)

    with records.transaction(db, "Apply invoice edit"):
        invoice = records.get_invoice(db, invoice_id)
        current = EditRequestStateEnum(_status_value(invoice.edit_request))
        if not actor.is_admin and current != EditRequestStateEnum.APPROVED:
            raise AuthorizationError("Editing this invoice requires an approved request.")

        job = records.get_job(db, invoice.job_id)
        if grouped["job"]:
            records.update_job(db, job.id, _normalize_job_changes(grouped["job"]))
        if grouped["customer"]:
            records.update_customer(db, job.customer_id, grouped["customer"])
        if grouped["vehicle"]:
            records.update_vehicle(db, job.vehicle_id, grouped["vehicle"])
        if grouped["invoice"]:
            records.update_invoice(
                db, invoice.id, _normalize_invoice_changes(grouped["invoice"])
            )

        if not actor.is_admin:
            records.update_invoice(
                db, invoice.id, {"edit_request": EditRequestStateEnum.NONE}
            )
            audit.record_applied(db, invoice_id=invoice.id, changes=dict(fields))

    logger.info("Invoice %s edited by %s", invoice_id, actor.username)
    return invoice


def mark_job_completed(
    db: Session,
    principal: Principal | None,
    *,
    job_id: int,
) -> Job:
    actor = authorize(principal)

    with records.transaction(db, "Complete job"):
        job = records.get_job(db, job_id)
        if _status_value(job.status) == JobStatusEnum.COMPLETED.value:
            return job
        records.update_job(db, job.id, {"status": JobStatusEnum.COMPLETED})

    logger.info("Job %s marked completed by %s", job_id, actor.username)
    return job
