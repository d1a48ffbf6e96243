from fastapi import APIRouter

from .auth import router as auth_router
from .customers import router as customers_router
from .employees import router as employees_router
from .invoices import router as invoices_router
from .jobs import router as jobs_router

api_router = APIRouter()
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(customers_router, tags=["customers"])
api_router.include_router(employees_router, tags=["employees"])
api_router.include_router(invoices_router, tags=["invoices"])
api_router.include_router(jobs_router, tags=["jobs"])
