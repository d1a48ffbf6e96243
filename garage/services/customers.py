"""Customer and vehicle records as staff manage them outside the invoice flow."""

from collections.abc import Mapping
from dataclasses import dataclass
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth import Principal, Role, authorize
from ..models import Customer, Job, Vehicle
from . import records

logger = logging.getLogger(__name__)


@dataclass
class CustomerDetail:
    customer: Customer
    vehicles: list[Vehicle]
    jobs: list[Job]


def list_customers(
    db: Session, principal: Principal | None, *, q: str | None = None
) -> list[Customer]:
    authorize(principal)
    return records.list_customers(db, q)


def get_customer_detail(
    db: Session, principal: Principal | None, *, customer_id: int
) -> CustomerDetail:
    authorize(principal)
    customer = records.get_customer(db, customer_id)
    jobs = (
        db.execute(
            select(Job)
            .where(Job.customer_id == customer.id)
            .order_by(Job.created_at.desc(), Job.id.desc())
        )
        .scalars()
        .all()
    )
    return CustomerDetail(
        customer=customer,
        vehicles=records.list_vehicles(db, customer.id),
        jobs=list(jobs),
    )


def create_customer(
    db: Session,
    principal: Principal | None,
    *,
    name: str | None,
    phone: str | None = None,
    email: str | None = None,
) -> Customer:
    actor = authorize(principal)
    with records.transaction(db, "Create customer"):
        customer = records.create_customer(
            db,
            {"name": name, "phone": phone, "email": email, "created_by": actor.id},
        )
    logger.info("Customer %s created by %s", customer.id, actor.username)
    return customer


def update_customer(
    db: Session, principal: Principal | None, *, customer_id: int, fields: Mapping
) -> Customer:
    actor = authorize(principal, Role.ADMIN)
    with records.transaction(db, "Update customer"):
        customer = records.update_customer(db, customer_id, fields)
    logger.info("Customer %s updated by %s", customer_id, actor.username)
    return customer


def list_vehicles(
    db: Session, principal: Principal | None, *, customer_id: int
) -> list[Vehicle]:
    authorize(principal)
    return records.list_vehicles(db, records.get_customer(db, customer_id).id)


def create_vehicle(
    db: Session,
    principal: Principal | None,
    *,
    customer_id: int,
    registration: str | None,
    model: str | None,
    type: str | None,
) -> Vehicle:
    actor = authorize(principal)
    with records.transaction(db, "Create vehicle"):
        vehicle = records.create_vehicle(
            db,
            {
                "customer_id": customer_id,
                "registration": registration,
                "model": model,
                "type": type,
                "created_by": actor.id,
            },
        )
    logger.info("Vehicle %s created by %s", vehicle.registration, actor.username)
    return vehicle


def update_vehicle(
    db: Session, principal: Principal | None, *, vehicle_id: int, fields: Mapping
) -> Vehicle:
    actor = authorize(principal, Role.ADMIN)
    with records.transaction(db, "Update vehicle"):
        vehicle = records.update_vehicle(db, vehicle_id, fields)
    logger.info("Vehicle %s updated by %s", vehicle_id, actor.username)
    return vehicle
