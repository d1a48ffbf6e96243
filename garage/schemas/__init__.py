from .auth import LoginRequest, LoginResponse, PrincipalRead
from .customer import (
    CustomerCreate,
    CustomerRead,
    CustomerUpdate,
    VehicleCreate,
    VehicleRead,
    VehicleUpdate,
)
from .employee import DashboardRead, EmployeeActive, EmployeeCreate, ProfileRead
from .invoice import (
    EditRequestCreate,
    EditRequestRead,
    EditReview,
    InvoiceDetail,
    InvoiceEdit,
    InvoiceRead,
)
from .job import (
    CustomerDetailRead,
    InvoiceCreate,
    InvoiceSummary,
    JobCreate,
    JobListRow,
    JobRead,
)

__all__ = [
    "LoginRequest",
    "LoginResponse",
    "PrincipalRead",
    "CustomerCreate",
    "CustomerRead",
    "CustomerUpdate",
    "VehicleCreate",
    "VehicleRead",
    "VehicleUpdate",
    "DashboardRead",
    "EmployeeActive",
    "EmployeeCreate",
    "ProfileRead",
    "EditRequestCreate",
    "EditRequestRead",
    "EditReview",
    "InvoiceDetail",
    "InvoiceEdit",
    "InvoiceRead",
    "CustomerDetailRead",
    "InvoiceCreate",
    "InvoiceSummary",
    "JobCreate",
    "JobListRow",
    "JobRead",
]
