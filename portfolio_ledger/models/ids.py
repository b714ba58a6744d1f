"""Opaque identifiers for portfolios and transactions."""

from __future__ import annotations

from uuid import UUID, uuid4

from ..errors import LedgerValidationError


def new_id() -> UUID:
    return uuid4()


def parse_id(value: UUID | str, kind: str = "id") -> UUID:
    """Parse a UUID, raising a validation error for malformed input."""

    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except (ValueError, AttributeError):
        raise LedgerValidationError(f"Invalid {kind} format: {value!r}") from None


__all__ = ["new_id", "parse_id"]
