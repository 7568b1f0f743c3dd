from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from core.config import settings
from core.db import async_engine
from core.logging import logger
from core.models import Base
from palanquee import ValidationError
from planning.exceptions import Busy, ConstraintViolation, NotFound, PermissionDenied, PlanningError, Unavailable

from . import audit, gas, safety_sheet, teams

ERROR_STATUS = {
    PermissionDenied: status.HTTP_403_FORBIDDEN,
    Unavailable: status.HTTP_403_FORBIDDEN,
    NotFound: status.HTTP_404_NOT_FOUND,
    ConstraintViolation: status.HTTP_409_CONFLICT,
    Busy: status.HTTP_503_SERVICE_UNAVAILABLE,
}

app = FastAPI(title=settings.app_name)


@app.on_event("startup")
async def startup() -> None:
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@app.exception_handler(PlanningError)
async def planning_error_handler(request: Request, exc: PlanningError) -> JSONResponse:
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    body = {"error": exc.code, "detail": str(exc)}
    if isinstance(exc, ConstraintViolation):
        body["kind"] = exc.kind.value
    logger.bind(event="request_rejected", path=request.url.path, error=exc.code).info(
        "{} {} rejected: {}", request.method, request.url.path, exc
    )
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "validation_error", "detail": str(exc)},
    )


app.include_router(teams.router, prefix="/api")
app.include_router(gas.router, prefix="/api")
app.include_router(safety_sheet.router, prefix="/api")
app.include_router(audit.router, prefix="/api")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "environment": settings.environment}
