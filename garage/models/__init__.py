from .base import Base
from .customer import Customer
from .edit_request import EditRequest, EditRequestStatusEnum
from .invoice import EditRequestStateEnum, Invoice, InvoiceStatusEnum
from .invoice_sequence import InvoiceSequence
from .job import Job, JobStatusEnum
from .profile import Profile, RoleEnum
from .vehicle import Vehicle
from .web_session import WebSession

__all__ = [
    "Base",
    "Customer",
    "EditRequest",
    "EditRequestStatusEnum",
    "EditRequestStateEnum",
    "Invoice",
    "InvoiceStatusEnum",
    "InvoiceSequence",
    "Job",
    "JobStatusEnum",
    "Profile",
    "RoleEnum",
    "Vehicle",
    "WebSession",
]
