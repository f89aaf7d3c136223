from __future__ import annotations
from fastapi import APIRouter, HTTPException, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST
from typing import List
from .models import HealthResponse, SensorInfo, ErrorResponse
from .service import ExporterService
from .adapter import BridgeError
from .config import MODE


router = APIRouter()
svc: ExporterService | None = None


def get_service() -> ExporterService:
    global svc
    if svc is None:
        svc = ExporterService()
    return svc


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns service health status and current operation mode (sim or real)",
    tags=["Health"]
)
def health() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="ok", mode=MODE.lower())


@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Scrapes lights, groups and sensors from the bridge and returns them in the Prometheus text format. "
                "Bridge failures show up as incremented *_scrapes_failed_total counters, never as an HTTP error.",
    response_class=Response,
    tags=["Metrics"]
)
def metrics(service: ExporterService = Depends(get_service)) -> Response:
    """Run one scrape and expose it."""
    return Response(content=service.render_metrics(), media_type=CONTENT_TYPE_LATEST)


@router.get(
    "/sensors",
    response_model=List[SensorInfo],
    summary="List reconciled sensors",
    description="Returns every supported sensor with its device id, emitted name and primary value",
    responses={
        502: {"model": ErrorResponse, "description": "The bridge could not be read"}
    },
    tags=["Sensors"]
)
def list_sensors(service: ExporterService = Depends(get_service)) -> List[SensorInfo]:
    """Get reconciled sensors."""
    try:
        return service.list_sensors()
    except BridgeError as e:
        raise HTTPException(status_code=502, detail=str(e))
