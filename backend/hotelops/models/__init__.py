from hotelops.models.hotel import Booking, Hotel, Room, User
from hotelops.models.market import CompetitorHotel, CompetitorRateSnapshot
from hotelops.models.signals import ExternalSignal, PricingSnapshot
from hotelops.models.ticket import ActivityLog, Conversation, Message, Ticket

__all__ = [
    "ActivityLog",
    "Booking",
    "CompetitorHotel",
    "CompetitorRateSnapshot",
    "Conversation",
    "ExternalSignal",
    "Hotel",
    "Message",
    "PricingSnapshot",
    "Room",
    "Ticket",
    "User",
]
