"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas import MonitorStatusResponse, ReadingResponse, SampleAcceptedResponse
from services.agent import TelemetryAgent, build_default_agent

router = APIRouter()


def get_agent() -> TelemetryAgent:
    return build_default_agent()


@router.get(
    "/reading",
    response_model=ReadingResponse,
    summary="Latest temperature reading held by the monitor.",
)
def get_reading(agent: TelemetryAgent = Depends(get_agent)) -> ReadingResponse:
    try:
        reading = agent.monitor.get_reading()
    except RuntimeError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    return ReadingResponse.from_reading(reading)


@router.get(
    "/status",
    response_model=MonitorStatusResponse,
    summary="Sampling state, cadence and latest reading.",
)
def get_status(agent: TelemetryAgent = Depends(get_agent)) -> MonitorStatusResponse:
    try:
        snapshot = agent.monitor.snapshot()
    except RuntimeError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    return MonitorStatusResponse.from_snapshot(snapshot)


@router.post(
    "/sample",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=SampleAcceptedResponse,
    summary="Request an immediate sampling cycle.",
)
async def request_sample(agent: TelemetryAgent = Depends(get_agent)) -> SampleAcceptedResponse:
    if not agent.monitor.running:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Monitor is not running.",
        )
    agent.monitor.trigger()
    return SampleAcceptedResponse(device_id=agent.device_id)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /reading for the latest temperature."}
