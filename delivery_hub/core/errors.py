"""Domain exceptions shared by services, API handlers and Streamlit clients."""

from __future__ import annotations


class DeliveryHubError(Exception):
    """Base class for domain errors."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DeliveryHubError):
    """Request rejected before any write was attempted."""

    status_code = 400


class InvalidTransitionError(ValidationError):
    """The requested event is not legal for the order's status and actor."""

    status_code = 409

    def __init__(self, current: str, event: str, actor: str) -> None:
        super().__init__(f"Invalid transition: cannot {event} an order in status '{current}' as {actor}")
        self.current = current
        self.event = event
        self.actor = actor


class MissingFieldError(ValidationError):
    """A field required by the requested event was not provided."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Missing required field: {field}")
        self.field = field


class PermissionDeniedError(DeliveryHubError):
    status_code = 403


class OrderNotFoundError(DeliveryHubError):
    status_code = 404

    def __init__(self, order_id: int) -> None:
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class StaleOrderError(DeliveryHubError):
    """Conditional write matched no row because the order changed meanwhile."""

    status_code = 409


class DataStoreError(DeliveryHubError):
    """Remote write or read failed (network, constraint, driver error)."""

    status_code = 502


class NotificationError(DeliveryHubError):
    """Push delivery failed. Never blocks a status transition."""

    status_code = 502


class BlobUploadError(DeliveryHubError):
    """Proof photo upload failed. Never blocks a status transition."""

    status_code = 502
