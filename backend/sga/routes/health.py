"""Health endpoints. Public: no authentication."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..health import HealthController
from . import provide

router = APIRouter(prefix="/health", tags=["health"])
controller = provide("healthController")


def _respond(result):
    status_code, body = result
    return JSONResponse(status_code=status_code, content=body)


@router.get("")
def detailed_health(health: HealthController = Depends(controller)):
    """Database, memory and process checks; 503 when degraded."""
    return _respond(health.detailed())


@router.get("/ready")
def readiness(health: HealthController = Depends(controller)):
    return _respond(health.readiness())


@router.get("/live")
def liveness(health: HealthController = Depends(controller)):
    return _respond(health.liveness())


basic_router = APIRouter(tags=["health"])


@basic_router.get("/health")
def basic_health(health: HealthController = Depends(controller)):
    """Lightweight health check for uptime monitoring."""
    return _respond(health.basic())
