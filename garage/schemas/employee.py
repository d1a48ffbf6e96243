from datetime import datetime

from pydantic import BaseModel

from ..models import RoleEnum


class EmployeeCreate(BaseModel):
    username: str
    password: str


class EmployeeActive(BaseModel):
    is_active: bool


class ProfileRead(BaseModel):
    id: int
    user_id: str
    username: str
    role: RoleEnum
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class DashboardRead(BaseModel):
    total_customers: int
    total_vehicles: int
    pending_jobs: int
    completed_jobs: int
    active_employees: int

    model_config = {"from_attributes": True}
