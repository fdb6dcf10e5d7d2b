import uuid

from hotelops.errors import ValidationFailure


def require_hotel_id(hotel_id: str | None) -> str:
    """Return the normalized hotel id or raise ValidationFailure."""
    value = (hotel_id or "").strip() if isinstance(hotel_id, str) else ""
    if not value:
        raise ValidationFailure("hotel_id is required", field="hotel_id")
    try:
        uuid.UUID(value)
    except ValueError:
        raise ValidationFailure(f"hotel_id '{value}' is not a valid id", field="hotel_id")
    return value


def require_positive_int(value, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationFailure(f"{field} must be a positive integer", field=field)
    return value


def require_text(value: str | None, field: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationFailure(f"{field} is required", field=field)
    return text
