from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from dependency_injector.wiring import inject, Provide

from src.domain.health.module import HealthModule
from src.domain.health.service import HealthService


router = APIRouter(prefix="/health", tags=["health"])


@router.get("", summary="Database and order monitor status")
@inject
async def health_check(
    service: HealthService = Depends(Provide[HealthModule.service]),
) -> JSONResponse:
    database = await service.check_database_health()
    healthy = database is not False
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "database": database,
            "monitor": service.monitor_status(),
        },
    )
