import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import settings
from .errors import LifecycleError
from .routes import api_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="garage_web", debug=settings.debug)

app.include_router(api_router)


@app.exception_handler(LifecycleError)
async def lifecycle_error_handler(
    request: Request, exc: LifecycleError
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


@app.get("/health", tags=["health"])
def health_check() -> dict:
    return {"status": "ok"}
