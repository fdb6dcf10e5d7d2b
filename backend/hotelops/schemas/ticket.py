from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Department(str, Enum):
    FRONT_DESK = "FRONT_DESK"
    HOUSEKEEPING = "HOUSEKEEPING"
    MAINTENANCE = "MAINTENANCE"
    CONCIERGE = "CONCIERGE"
    BILLING = "BILLING"
    MANAGEMENT = "MANAGEMENT"


class TicketPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class TicketCategory(str, Enum):
    HOUSEKEEPING = "HOUSEKEEPING"
    MAINTENANCE = "MAINTENANCE"
    CONCIERGE = "CONCIERGE"
    BILLING = "BILLING"
    COMPLAINT = "COMPLAINT"
    OTHER = "OTHER"


class TicketStatus(str, Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class AdvisoryMeta(BaseModel):
    weather_synced_at_utc: str | None = None
    generated_at_utc: str | None = None


class AdvisoryTicketRequest(BaseModel):
    advisory_id: str | None = None
    title: str = ""
    reason: str = ""
    priority: str = ""
    department: str | None = None
    source: str | None = None
    meta: AdvisoryMeta | None = None


class PricingActionTicketRequest(BaseModel):
    night_date: str = ""
    action: str = ""
    reason: str = ""
    department: str | None = None
    priority: str | None = None
    confidence: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class TicketDraft(BaseModel):
    """Everything written in one ticket-creation transaction."""

    hotel_id: str
    user_id: str
    subject: str
    message_body: str
    department: Department
    category: TicketCategory
    priority: TicketPriority
    source_key: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    audit_action: str
    audit_details: dict[str, Any] = Field(default_factory=dict)


class StoredTicket(BaseModel):
    id: str
    hotel_id: str
    conversation_id: str
    department: Department
    priority: TicketPriority
    status: TicketStatus = TicketStatus.OPEN
    assigned_to_id: str | None = None
    source_key: str | None = None


class TicketResult(BaseModel):
    ticket_id: str
    conversation_id: str
    status: TicketStatus
    department: Department
    priority: TicketPriority
    assigned_to: str | None = None
    deduped: bool
    ticket_url: str
