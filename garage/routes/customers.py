from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import Principal
from ..db import get_db
from ..dependencies import get_principal
from ..schemas import (
    CustomerCreate,
    CustomerDetailRead,
    CustomerRead,
    CustomerUpdate,
    VehicleCreate,
    VehicleRead,
    VehicleUpdate,
)
from ..services import customers as customers_service

router = APIRouter()


@router.get("/customers", response_model=list[CustomerRead])
def customers_list(
    q: str | None = None,
    principal: Principal | None = Depends(get_principal),
    db: Session = Depends(get_db),
) -> list[CustomerRead]:
    return customers_service.list_customers(db, principal, q=q)


@router.post("/customers", response_model=CustomerRead, status_code=201)
def customers_create(
    payload: CustomerCreate,
    principal: Principal | None = Depends(get_principal),
    db: Session = Depends(get_db),
) -> CustomerRead:
    return customers_service.create_customer(
        db, principal, name=payload.name, phone=payload.phone, email=payload.email
    )


@router.get("/customers/{customer_id}", response_model=CustomerDetailRead)
def customers_detail(
    customer_id: int,
    principal: Principal | None = Depends(get_principal),
    db: Session = Depends(get_db),
) -> CustomerDetailRead:
    detail = customers_service.get_customer_detail(
        db, principal, customer_id=customer_id
    )
    return CustomerDetailRead.model_validate(detail)


@router.patch("/customers/{customer_id}", response_model=CustomerRead)
def customers_update(
    customer_id: int,
    payload: CustomerUpdate,
    principal: Principal | None = Depends(get_principal),
    db: Session = Depends(get_db),
) -> CustomerRead:
    return customers_service.update_customer(
        db,
        principal,
        customer_id=customer_id,
        fields=payload.model_dump(exclude_unset=True),
    )


@router.get("/customers/{customer_id}/vehicles", response_model=list[VehicleRead])
def vehicles_list(
    customer_id: int,
    principal: Principal | None = Depends(get_principal),
    db: Session = Depends(get_db),
) -> list[VehicleRead]:
    return customers_service.list_vehicles(db, principal, customer_id=customer_id)


@router.post(
    "/customers/{customer_id}/vehicles", response_model=VehicleRead, status_code=201
)
def vehicles_create(
    customer_id: int,
    payload: VehicleCreate,
    principal: Principal | None = Depends(get_principal),
    db: Session = Depends(get_db),
) -> VehicleRead:
    return customers_service.create_vehicle(
        db,
        principal,
        customer_id=customer_id,
        registration=payload.registration,
        model=payload.model,
        type=payload.type,
    )


@router.patch("/vehicles/{vehicle_id}", response_model=VehicleRead)
def vehicles_update(
    vehicle_id: int,
    payload: VehicleUpdate,
    principal: Principal | None = Depends(get_principal),
    db: Session = Depends(get_db),
) -> VehicleRead:
    return customers_service.update_vehicle(
        db,
        principal,
        vehicle_id=vehicle_id,
        fields=payload.model_dump(exclude_unset=True),
    )
