from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import Principal
from ..db import get_db
from ..dependencies import get_principal
from ..schemas import (
    EditRequestCreate,
    EditRequestRead,
    EditReview,
    InvoiceDetail,
    InvoiceEdit,
    InvoiceRead,
)
from ..services import audit, lifecycle, reports

router = APIRouter()


@router.get("/invoices/{invoice_id}", response_model=InvoiceDetail)
def invoices_detail(
    invoice_id: int,
    principal: Principal | None = Depends(get_principal),
    db: Session = Depends(get_db),
) -> InvoiceDetail:
    view = reports.invoice_view(db, principal, invoice_id=invoice_id)
    return InvoiceDetail.model_validate(view)


@router.post("/invoices/{invoice_id}/edit-request", response_model=InvoiceRead)
def invoices_request_edit(
    invoice_id: int,
    payload: EditRequestCreate | None = None,
    principal: Principal | None = Depends(get_principal),
    db: Session = Depends(get_db),
) -> InvoiceRead:
    return lifecycle.request_invoice_edit(
        db,
        principal,
        invoice_id=invoice_id,
        reason=payload.reason if payload else None,
    )


@router.post("/invoices/{invoice_id}/edit-request/review", response_model=InvoiceRead)
def invoices_review_edit(
    invoice_id: int,
    payload: EditReview,
    principal: Principal | None = Depends(get_principal),
    db: Session = Depends(get_db),
) -> InvoiceRead:
    return lifecycle.review_invoice_edit(
        db, principal, invoice_id=invoice_id, decision=payload.decision
    )


@router.patch("/invoices/{invoice_id}", response_model=InvoiceRead)
def invoices_apply_edit(
    invoice_id: int,
    payload: InvoiceEdit,
    principal: Principal | None = Depends(get_principal),
    db: Session = Depends(get_db),
) -> InvoiceRead:
    return lifecycle.apply_invoice_edit(
        db, principal, invoice_id=invoice_id, fields=payload.fields
    )


@router.get("/edit-requests", response_model=list[EditRequestRead])
def edit_requests_list(
    status: str | None = None,
    principal: Principal | None = Depends(get_principal),
    db: Session = Depends(get_db),
) -> list[EditRequestRead]:
    return audit.list_edit_requests(db, principal, status=status)
