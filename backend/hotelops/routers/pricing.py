"""Pricing router - live forecast, resolved (snapshot-first) forecast, snapshot job."""

from fastapi import APIRouter, Depends, Query

from hotelops.dependencies import Actor, Services, get_actor, get_services
from hotelops.schemas.pricing import SnapshotJobRequest

router = APIRouter()


@router.get("/forecast")
async def get_forecast(
    days_ahead: int = Query(30, ge=1, le=365),
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    """Always computed on request; nothing is stored."""
    forecast = await services.forecaster.generate_forecast(actor.hotel_id, days_ahead)
    return {"success": True, "data": forecast.model_dump(mode="json")}


@router.get("/resolved")
async def get_resolved_forecast(
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    resolved = await services.snapshots.resolve_forecast(actor.hotel_id)
    return {"success": True, "data": resolved.model_dump(mode="json")}


@router.post("/snapshots/run")
async def run_snapshots(
    req: SnapshotJobRequest,
    services: Services = Depends(get_services),
):
    """Trigger for an external timer. Without hotel_id every hotel is refreshed."""
    result = await services.snapshots.run_snapshot_job(
        hotel_id=req.hotel_id, days_ahead=req.days_ahead, force=req.force
    )
    return {"success": True, "data": result.model_dump(mode="json")}
