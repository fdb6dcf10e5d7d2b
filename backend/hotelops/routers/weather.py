"""Weather router - cached context read and OpenWeather sync."""

from fastapi import APIRouter, Depends

from hotelops.dependencies import Actor, Services, get_actor, get_services
from hotelops.errors import DependencyUnavailable
from hotelops.services.validation import require_hotel_id

router = APIRouter()


@router.get("/context")
async def get_weather_context(
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    hotel_id = require_hotel_id(actor.hotel_id)
    context = await services.weather.get_context(hotel_id)
    return {"success": True, "data": context.model_dump(mode="json") if context else None}


@router.post("/sync")
async def sync_weather(
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    if services.weather_sync is None:
        raise DependencyUnavailable("openweather", "weather sync is not configured")
    result = await services.weather_sync.sync_hotel_weather(actor.hotel_id)
    return {"success": True, "data": result.model_dump(mode="json")}
