"""Operations router - dashboard context and ticket creation from advisories."""

from fastapi import APIRouter, Depends

from hotelops.dependencies import Actor, Services, get_actor, get_services
from hotelops.schemas.ticket import AdvisoryTicketRequest, PricingActionTicketRequest

router = APIRouter()


@router.get("/context")
async def get_context(
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    """Next-24h ops load, weather, pricing signal and routed advisories."""
    view = await services.operations.get_operations_context(actor.hotel_id)
    return {"success": True, "data": view.model_dump(mode="json")}


@router.post("/advisories/create-ticket")
async def create_advisory_ticket(
    req: AdvisoryTicketRequest,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    result = await services.ticketing.create_ticket_from_advisory(actor.hotel_id, actor.user_id, req)
    return {"success": True, "data": result.model_dump(mode="json")}


@router.post("/pricing-actions/create-ticket")
async def create_pricing_action_ticket(
    req: PricingActionTicketRequest,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    result = await services.ticketing.create_ticket_from_pricing_action(actor.hotel_id, actor.user_id, req)
    return {"success": True, "data": result.model_dump(mode="json")}
