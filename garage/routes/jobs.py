from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import Principal
from ..db import get_db
from ..dependencies import get_principal
from ..schemas import (
    InvoiceCreate,
    InvoiceDetail,
    InvoiceRead,
    JobCreate,
    JobListRow,
    JobRead,
)
from ..services import lifecycle, reports

router = APIRouter()


@router.get("/jobs", response_model=list[JobListRow])
def jobs_list(
    status: str | None = None,
    q: str | None = None,
    principal: Principal | None = Depends(get_principal),
    db: Session = Depends(get_db),
) -> list[JobListRow]:
    return reports.list_jobs(db, principal, status=status, q=q)


@router.post("/jobs", response_model=JobRead, status_code=201)
def jobs_create(
    payload: JobCreate,
    principal: Principal | None = Depends(get_principal),
    db: Session = Depends(get_db),
) -> JobRead:
    return lifecycle.create_job(
        db,
        principal,
        customer_id=payload.customer_id,
        vehicle_id=payload.vehicle_id,
        description=payload.description,
        notes=payload.notes,
        employee_id=payload.employee_id,
    )


@router.post("/jobs/{job_id}/complete", response_model=JobRead)
def jobs_complete(
    job_id: int,
    principal: Principal | None = Depends(get_principal),
    db: Session = Depends(get_db),
) -> JobRead:
    return lifecycle.mark_job_completed(db, principal, job_id=job_id)


@router.post("/jobs/{job_id}/invoice", response_model=InvoiceRead, status_code=201)
def jobs_invoice(
    job_id: int,
    payload: InvoiceCreate,
    principal: Principal | None = Depends(get_principal),
    db: Session = Depends(get_db),
) -> InvoiceRead:
    return lifecycle.create_invoice(
        db,
        principal,
        job_id=job_id,
        final_description=payload.final_description,
        cost=payload.cost,
        notes=payload.notes,
    )


@router.get("/jobs/{job_id}/invoice", response_model=InvoiceDetail)
def jobs_invoice_detail(
    job_id: int,
    principal: Principal | None = Depends(get_principal),
    db: Session = Depends(get_db),
) -> InvoiceDetail:
    view = reports.invoice_view(db, principal, job_id=job_id)
    return InvoiceDetail.model_validate(view)
