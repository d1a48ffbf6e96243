from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import Principal
from ..db import get_db
from ..dependencies import get_principal
from ..schemas import DashboardRead, EmployeeActive, EmployeeCreate, ProfileRead
from ..services import identity, reports

router = APIRouter()


@router.get("/employees", response_model=list[ProfileRead])
def employees_list(
    principal: Principal | None = Depends(get_principal),
    db: Session = Depends(get_db),
) -> list[ProfileRead]:
    return identity.list_profiles(db, principal)


@router.post("/employees", response_model=ProfileRead, status_code=201)
def employees_create(
    payload: EmployeeCreate,
    principal: Principal | None = Depends(get_principal),
    db: Session = Depends(get_db),
) -> ProfileRead:
    return identity.create_profile(
        db, principal, username=payload.username, password=payload.password
    )


@router.post("/employees/{profile_id}/active", response_model=ProfileRead)
def employees_set_active(
    profile_id: int,
    payload: EmployeeActive,
    principal: Principal | None = Depends(get_principal),
    db: Session = Depends(get_db),
) -> ProfileRead:
    return identity.set_profile_active(
        db, principal, profile_id=profile_id, is_active=payload.is_active
    )


@router.get("/dashboard", response_model=DashboardRead)
def dashboard(
    principal: Principal | None = Depends(get_principal),
    db: Session = Depends(get_db),
) -> DashboardRead:
    return DashboardRead.model_validate(reports.dashboard_stats(db, principal))
