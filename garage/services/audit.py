from collections.abc import Mapping
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth import Principal, Role, authorize
from ..errors import ValidationError
from ..models import EditRequest, EditRequestStateEnum, EditRequestStatusEnum
from ..models.base import utcnow

INVOICE_TABLE = "invoices"


def _jsonable(changes: Mapping) -> dict:
    result: dict = {}
    for key, value in changes.items():
        if isinstance(value, Decimal):
            value = str(value)
        elif hasattr(value, "value"):
            value = value.value
        result[str(key)] = value
    return result


def _latest(
    db: Session, invoice_id: int, status: EditRequestStatusEnum
) -> EditRequest | None:
    return (
        db.execute(
            select(EditRequest)
            .where(
                EditRequest.table_name == INVOICE_TABLE,
                EditRequest.record_id == invoice_id,
                EditRequest.status == status,
            )
            .order_by(EditRequest.id.desc())
            .limit(1)
        )
        .scalars()
        .first()
    )


def record_request(
    db: Session, *, invoice_id: int, employee_id: int, reason: str | None
) -> EditRequest:
    entry = EditRequest(
        table_name=INVOICE_TABLE,
        record_id=invoice_id,
        employee_id=employee_id,
        reason=(reason or "").strip() or None,
        requested_changes={},
        status=EditRequestStatusEnum.PENDING,
    )
    db.add(entry)
    db.flush()
    return entry


def record_review(
    db: Session,
    *,
    invoice_id: int,
    reviewer_id: int,
    decision: EditRequestStateEnum,
) -> EditRequest | None:
    entry = _latest(db, invoice_id, EditRequestStatusEnum.PENDING)
    if entry is None:
        return None
    entry.status = EditRequestStatusEnum(decision.value)
    entry.reviewed_by = reviewer_id
    entry.reviewed_at = utcnow()
    db.flush()
    return entry


def record_applied(
    db: Session, *, invoice_id: int, changes: Mapping
) -> EditRequest | None:
    entry = _latest(db, invoice_id, EditRequestStatusEnum.APPROVED)
    if entry is None:
        return None
    entry.requested_changes = _jsonable(changes)
    db.flush()
    return entry


def list_edit_requests(
    db: Session,
    principal: Principal | None,
    *,
    status: str | None = None,
) -> list[EditRequest]:
    authorize(principal, Role.ADMIN)
    query = select(EditRequest).order_by(
        EditRequest.created_at.desc(), EditRequest.id.desc()
    )
    if status:
        try:
            wanted = EditRequestStatusEnum(status)
        except ValueError:
            raise ValidationError(f"Unknown edit request status: {status}.") from None
        query = query.where(EditRequest.status == wanted)
    return list(db.execute(query).scalars().all())
