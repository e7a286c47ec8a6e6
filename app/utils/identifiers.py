from uuid import UUID

from app.core.errors import ValidationError


def parse_id(value: str, field: str = "id") -> str:
    """Canonical string form of a UUID identifier; malformed values -> ValidationError."""
    try:
        return str(UUID(str(value)))
    except (ValueError, TypeError):
        raise ValidationError(f"Invalid {field}") from None
