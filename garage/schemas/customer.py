from datetime import datetime

from pydantic import BaseModel


class CustomerCreate(BaseModel):
    name: str
    phone: str | None = None
    email: str | None = None


class CustomerUpdate(BaseModel):
    name: str | None = None
    phone: str | None = None
    email: str | None = None


class CustomerRead(BaseModel):
    id: int
    name: str
    phone: str | None
    email: str | None
    created_by: int
    created_at: datetime

    model_config = {"from_attributes": True}


class VehicleCreate(BaseModel):
    registration: str
    model: str
    type: str


class VehicleUpdate(BaseModel):
    registration: str | None = None
    model: str | None = None
    type: str | None = None
    customer_id: int | None = None


class VehicleRead(BaseModel):
    id: int
    registration: str
    model: str
    type: str
    customer_id: int

    model_config = {"from_attributes": True}
