"""Input guards shared by the services. All raise ValidationError before any I/O happens."""

import uuid

from shared.errors.AppError import ValidationError


def require_text(value: str | None, field: str) -> str:
    """Return the value stripped of surrounding whitespace, rejecting empty input."""
    if value is None or not str(value).strip():
        raise ValidationError(f"'{field}' is required and must not be empty.")
    return str(value).strip()


def require_uuid(value: str | None, field: str) -> str:
    """Return the canonical string form of a UUID, rejecting empty or malformed input."""
    raw = require_text(value, field)
    try:
        return str(uuid.UUID(raw))
    except ValueError:
        raise ValidationError(f"'{field}' must be a valid UUID, got '{raw}'.")
