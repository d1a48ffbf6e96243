from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from garage.errors import (
    AccountDeactivated,
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    PartialFailureError,
    Unauthenticated,
    ValidationError,
)
from garage.models import (
    Customer,
    EditRequest,
    EditRequestStateEnum,
    Invoice,
    InvoiceStatusEnum,
    Job,
    JobStatusEnum,
    Vehicle,
)
from garage.services import lifecycle, records


def _invoice(db_session, admin, job, cost="50.00"):
    return lifecycle.create_invoice(
        db_session,
        admin,
        job_id=job.id,
        final_description="Oil change",
        cost=cost,
    )


def test_create_job_starts_pending_with_zero_cost(db_session, employee, customer_vehicle):
    customer, vehicle = customer_vehicle
    job = lifecycle.create_job(
        db_session,
        employee,
        customer_id=customer.id,
        vehicle_id=vehicle.id,
        description="  Oil change ",
    )

    db_session.refresh(job)
    assert job.status == JobStatusEnum.PENDING
    assert job.cost == Decimal("0.00")
    assert job.description == "Oil change"
    assert job.assigned_employee == employee.id


@pytest.mark.parametrize(
    "overrides",
    [
        {"description": ""},
        {"description": "   "},
        {"customer_id": None},
        {"vehicle_id": None},
        {"customer_id": 9999},
        {"vehicle_id": 9999},
    ],
)
def test_create_job_rejects_missing_input(
    db_session, employee, customer_vehicle, overrides
):
    customer, vehicle = customer_vehicle
    kwargs = {
        "customer_id": customer.id,
        "vehicle_id": vehicle.id,
        "description": "Brake pads",
    }
    kwargs.update(overrides)

    with pytest.raises(ValidationError):
        lifecycle.create_job(db_session, employee, **kwargs)


def test_create_job_rejects_vehicle_of_other_customer(
    db_session, employee, customer_vehicle
):
    _, vehicle = customer_vehicle
    other = Customer(name="C2", created_by=employee.id)
    db_session.add(other)
    db_session.commit()

    with pytest.raises(ValidationError):
        lifecycle.create_job(
            db_session,
            employee,
            customer_id=other.id,
            vehicle_id=vehicle.id,
            description="Tyres",
        )


def test_employee_cannot_assign_job_to_someone_else(
    db_session, admin, employee, customer_vehicle
):
    customer, vehicle = customer_vehicle

    with pytest.raises(AuthorizationError):
        lifecycle.create_job(
            db_session,
            employee,
            customer_id=customer.id,
            vehicle_id=vehicle.id,
            description="Tyres",
            employee_id=admin.id,
        )


def test_admin_assigns_job_to_employee(db_session, admin, employee, customer_vehicle):
    customer, vehicle = customer_vehicle

    job = lifecycle.create_job(
        db_session,
        admin,
        customer_id=customer.id,
        vehicle_id=vehicle.id,
        description="Tyres",
        employee_id=employee.id,
    )

    assert job.assigned_employee == employee.id


def test_job_cannot_go_to_deactivated_employee(
    db_session, admin, inactive, customer_vehicle
):
    customer, vehicle = customer_vehicle

    with pytest.raises(ValidationError):
        lifecycle.create_job(
            db_session,
            admin,
            customer_id=customer.id,
            vehicle_id=vehicle.id,
            description="Tyres",
            employee_id=inactive.id,
        )


def test_create_invoice_completes_job(db_session, admin, pending_job):
    invoice = _invoice(db_session, admin, pending_job, cost=50)

    db_session.refresh(pending_job)
    assert pending_job.status == JobStatusEnum.COMPLETED
    assert pending_job.cost == Decimal("50.00")
    assert invoice.status == "pending"
    assert invoice.edit_request == EditRequestStateEnum.NONE
    assert invoice.invoice_number.startswith("INV-")


def test_second_invoice_for_job_conflicts(db_session, admin, employee, pending_job):
    _invoice(db_session, admin, pending_job)

    with pytest.raises(ConflictError):
        _invoice(db_session, employee, pending_job, cost="80.00")

    count = db_session.execute(
        select(func.count()).select_from(Invoice).where(Invoice.job_id == pending_job.id)
    ).scalar()
    assert count == 1
    db_session.refresh(pending_job)
    assert pending_job.cost == Decimal("50.00")


def test_losing_concurrent_invoice_rolls_back(
    db_session, SessionLocal, admin, employee, customer_vehicle, monkeypatch
):
    customer, vehicle = customer_vehicle
    job = lifecycle.create_job(
        db_session,
        employee,
        customer_id=customer.id,
        vehicle_id=vehicle.id,
        description="Oil change",
    )
    job_id = job.id
    winner = SessionLocal()
    try:
        _invoice(winner, admin, job, cost="50.00")
    finally:
        winner.close()
    db_session.expire_all()

    # The second caller read "no invoice yet" before the first one committed.
    monkeypatch.setattr(records, "get_invoice_by_job", lambda db, job_id: None)

    with pytest.raises(ConflictError):
        lifecycle.create_invoice(
            db_session,
            employee,
            job_id=job_id,
            final_description="Full service",
            cost="80.00",
        )

    fresh = SessionLocal()
    try:
        stored = fresh.get(Job, job_id)
        assert stored.status == JobStatusEnum.COMPLETED
        assert stored.cost == Decimal("50.00")
        assert stored.description == "Oil change"
        count = fresh.execute(
            select(func.count()).select_from(Invoice).where(Invoice.job_id == job_id)
        ).scalar()
        assert count == 1
    finally:
        fresh.close()


def test_conflicting_invoice_leaves_pending_job_untouched(
    db_session, SessionLocal, admin, pending_job, monkeypatch
):
    job_id = pending_job.id
    db_session.add(
        Invoice(
            job_id=job_id,
            invoice_number="INV-00-00001",
            status=InvoiceStatusEnum.PENDING,
            edit_request=EditRequestStateEnum.NONE,
        )
    )
    db_session.commit()
    monkeypatch.setattr(records, "get_invoice_by_job", lambda db, job_id: None)

    with pytest.raises(ConflictError):
        _invoice(db_session, admin, pending_job, cost="80.00")

    fresh = SessionLocal()
    try:
        stored = fresh.get(Job, job_id)
        assert stored.status == JobStatusEnum.PENDING
        assert stored.cost == Decimal("0.00")
    finally:
        fresh.close()


@pytest.mark.parametrize(
    "cost",
    [-1, "-0.01", "abc", None, True, "NaN", "Infinity", "1e30", "10000000000"],
)
def test_create_invoice_rejects_bad_cost(db_session, admin, pending_job, cost):
    with pytest.raises(ValidationError):
        _invoice(db_session, admin, pending_job, cost=cost)

    db_session.refresh(pending_job)
    assert pending_job.status == JobStatusEnum.PENDING
    assert records.get_invoice_by_job(db_session, pending_job.id) is None


def test_invoice_numbers_are_sequential(db_session, admin, employee, customer_vehicle):
    customer, vehicle = customer_vehicle
    numbers = []
    for description in ("Oil change", "Wheel alignment"):
        job = lifecycle.create_job(
            db_session,
            employee,
            customer_id=customer.id,
            vehicle_id=vehicle.id,
            description=description,
        )
        numbers.append(_invoice(db_session, admin, job).invoice_number)

    assert numbers[0] != numbers[1]
    assert int(numbers[1][-5:]) == int(numbers[0][-5:]) + 1


def test_request_edit_twice_is_invalid(db_session, admin, employee, pending_job):
    invoice = _invoice(db_session, admin, pending_job)
    lifecycle.request_invoice_edit(db_session, employee, invoice_id=invoice.id)

    with pytest.raises(InvalidStateError):
        lifecycle.request_invoice_edit(db_session, employee, invoice_id=invoice.id)


@pytest.mark.parametrize("request_first", [False, True])
def test_review_requires_admin(db_session, admin, employee, pending_job, request_first):
    invoice = _invoice(db_session, admin, pending_job)
    if request_first:
        lifecycle.request_invoice_edit(db_session, employee, invoice_id=invoice.id)

    with pytest.raises(AuthorizationError):
        lifecycle.review_invoice_edit(
            db_session, employee, invoice_id=invoice.id, decision="approved"
        )


def test_review_without_request_is_invalid(db_session, admin, pending_job):
    invoice = _invoice(db_session, admin, pending_job)

    with pytest.raises(InvalidStateError):
        lifecycle.review_invoice_edit(
            db_session, admin, invoice_id=invoice.id, decision="rejected"
        )


def test_review_rejects_unknown_decision(db_session, admin, employee, pending_job):
    invoice = _invoice(db_session, admin, pending_job)
    lifecycle.request_invoice_edit(db_session, employee, invoice_id=invoice.id)

    with pytest.raises(ValidationError):
        lifecycle.review_invoice_edit(
            db_session, admin, invoice_id=invoice.id, decision="maybe"
        )


def test_approval_allows_exactly_one_employee_edit(
    db_session, admin, employee, pending_job
):
    invoice = _invoice(db_session, admin, pending_job)
    lifecycle.request_invoice_edit(db_session, employee, invoice_id=invoice.id)
    lifecycle.review_invoice_edit(
        db_session, admin, invoice_id=invoice.id, decision="approved"
    )

    lifecycle.apply_invoice_edit(
        db_session,
        employee,
        invoice_id=invoice.id,
        fields={"job.cost": "75.50", "vehicle.model": "Axio"},
    )

    db_session.refresh(invoice)
    db_session.refresh(pending_job)
    assert invoice.edit_request == EditRequestStateEnum.NONE
    assert pending_job.cost == Decimal("75.50")
    assert db_session.get(Vehicle, pending_job.vehicle_id).model == "Axio"

    with pytest.raises(AuthorizationError):
        lifecycle.apply_invoice_edit(
            db_session, employee, invoice_id=invoice.id, fields={"job.cost": "1.00"}
        )
    db_session.refresh(pending_job)
    assert pending_job.cost == Decimal("75.50")


def test_employee_cannot_edit_after_rejection(db_session, admin, employee, pending_job):
    invoice = _invoice(db_session, admin, pending_job)
    lifecycle.request_invoice_edit(db_session, employee, invoice_id=invoice.id)
    lifecycle.review_invoice_edit(
        db_session, admin, invoice_id=invoice.id, decision="rejected"
    )

    with pytest.raises(AuthorizationError):
        lifecycle.apply_invoice_edit(
            db_session, employee, invoice_id=invoice.id, fields={"job.notes": "x"}
        )


def test_admin_edits_without_approval(db_session, admin, pending_job):
    invoice = _invoice(db_session, admin, pending_job)

    lifecycle.apply_invoice_edit(
        db_session,
        admin,
        invoice_id=invoice.id,
        fields={
            "customer.name": "C1 Ltd",
            "job.description": "Oil and filter change",
            "invoice.status": "completed",
        },
    )

    db_session.refresh(invoice)
    db_session.refresh(pending_job)
    assert invoice.edit_request == EditRequestStateEnum.NONE
    assert invoice.status == "completed"
    assert pending_job.description == "Oil and filter change"
    assert db_session.get(Customer, pending_job.customer_id).name == "C1 Ltd"


@pytest.mark.parametrize(
    "fields",
    [
        {},
        {"job.status": "pending"},
        {"cost": "10"},
        {"job.cost": "-5"},
        {"job.cost": "1e30"},
    ],
)
def test_invalid_edit_keeps_approval(db_session, admin, employee, pending_job, fields):
    invoice = _invoice(db_session, admin, pending_job)
    lifecycle.request_invoice_edit(db_session, employee, invoice_id=invoice.id)
    lifecycle.review_invoice_edit(
        db_session, admin, invoice_id=invoice.id, decision="approved"
    )

    with pytest.raises(ValidationError):
        lifecycle.apply_invoice_edit(
            db_session, employee, invoice_id=invoice.id, fields=fields
        )

    db_session.refresh(invoice)
    assert invoice.edit_request == EditRequestStateEnum.APPROVED


def test_mark_job_completed_is_idempotent(db_session, employee, pending_job):
    lifecycle.mark_job_completed(db_session, employee, job_id=pending_job.id)
    db_session.refresh(pending_job)
    first = (pending_job.status, pending_job.cost)

    lifecycle.mark_job_completed(db_session, employee, job_id=pending_job.id)
    db_session.refresh(pending_job)

    assert (pending_job.status, pending_job.cost) == first
    assert pending_job.status == JobStatusEnum.COMPLETED


def test_completed_job_can_still_be_invoiced(db_session, admin, employee, pending_job):
    lifecycle.mark_job_completed(db_session, employee, job_id=pending_job.id)

    invoice = _invoice(db_session, admin, pending_job, cost="120")

    assert invoice.job_id == pending_job.id


def test_end_to_end_edit_cycle(db_session, admin, employee, customer_vehicle):
    customer, vehicle = customer_vehicle
    job = lifecycle.create_job(
        db_session,
        employee,
        customer_id=customer.id,
        vehicle_id=vehicle.id,
        description="Oil change",
        employee_id=employee.id,
    )
    db_session.refresh(job)
    assert (job.status, job.cost) == (JobStatusEnum.PENDING, Decimal("0.00"))

    invoice = _invoice(db_session, admin, job, cost="50.00")
    db_session.refresh(job)
    assert (job.status, job.cost) == (JobStatusEnum.COMPLETED, Decimal("50.00"))
    assert invoice.edit_request == EditRequestStateEnum.NONE

    lifecycle.request_invoice_edit(db_session, employee, invoice_id=invoice.id)
    db_session.refresh(invoice)
    assert invoice.edit_request == EditRequestStateEnum.REQUESTED

    lifecycle.review_invoice_edit(
        db_session, admin, invoice_id=invoice.id, decision="rejected"
    )
    db_session.refresh(invoice)
    assert invoice.edit_request == EditRequestStateEnum.REJECTED

    lifecycle.request_invoice_edit(db_session, employee, invoice_id=invoice.id)
    db_session.refresh(invoice)
    assert invoice.edit_request == EditRequestStateEnum.REQUESTED


def test_edit_requests_are_audited(db_session, admin, employee, pending_job):
    invoice = _invoice(db_session, admin, pending_job)
    lifecycle.request_invoice_edit(
        db_session, employee, invoice_id=invoice.id, reason="Wrong cost"
    )
    lifecycle.review_invoice_edit(
        db_session, admin, invoice_id=invoice.id, decision="approved"
    )
    lifecycle.apply_invoice_edit(
        db_session, employee, invoice_id=invoice.id, fields={"job.cost": "60"}
    )

    entry = db_session.execute(select(EditRequest)).scalar_one()
    assert entry.record_id == invoice.id
    assert entry.employee_id == employee.id
    assert entry.reason == "Wrong cost"
    assert entry.status == "approved"
    assert entry.reviewed_by == admin.id
    assert entry.reviewed_at is not None
    assert entry.requested_changes == {"job.cost": "60"}


@pytest.mark.parametrize(
    "operation, kwargs",
    [
        (lifecycle.review_invoice_edit, {"invoice_id": 1, "decision": "approved"}),
        (lifecycle.request_invoice_edit, {"invoice_id": 1}),
        (lifecycle.mark_job_completed, {"job_id": 1}),
        (lifecycle.apply_invoice_edit, {"invoice_id": 1, "fields": {"job.notes": "x"}}),
        (
            lifecycle.create_job,
            {"customer_id": 1, "vehicle_id": 1, "description": "Oil change"},
        ),
        (
            lifecycle.create_invoice,
            {"job_id": 1, "final_description": "Oil change", "cost": "10"},
        ),
    ],
)
def test_deactivated_profile_is_refused_first(db_session, inactive, operation, kwargs):
    with pytest.raises(AccountDeactivated):
        operation(db_session, inactive, **kwargs)


def test_missing_principal_is_unauthenticated(db_session, pending_job):
    with pytest.raises(Unauthenticated):
        lifecycle.mark_job_completed(db_session, None, job_id=pending_job.id)


def test_failed_rollback_reports_partial_failure(db_session, monkeypatch):
    def broken_commit():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    def broken_rollback():
        raise OperationalError("ROLLBACK", {}, Exception("connection lost"))

    monkeypatch.setattr(db_session, "commit", broken_commit)
    monkeypatch.setattr(db_session, "rollback", broken_rollback)

    with pytest.raises(PartialFailureError):
        with records.transaction(db_session, "Create invoice"):
            pass
