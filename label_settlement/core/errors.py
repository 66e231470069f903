"""Domain errors raised by the settlement services."""
from fastapi import status


class SettlementError(Exception):
    """Base class for settlement errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(SettlementError):
    """Release, earning or artist absent, or outside the caller's brand."""

    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(SettlementError):
    """Missing or malformed amount, date or CSV column."""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(SettlementError):
    """Operation already applied (allocation or fee finalization)."""

    status_code = status.HTTP_409_CONFLICT


class DependencyFailure(SettlementError):
    """Fee hook or notification collaborator error."""

    status_code = status.HTTP_502_BAD_GATEWAY
