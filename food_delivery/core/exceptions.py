"""
Order Engine Errors

Every failure raised by pricing, the status lifecycle or persistence is
scoped to a single operation and carries enough context for the API layer
to build a precise message. ``status_code`` is the HTTP status the API
maps each error to.
"""

from typing import Any, Optional


class OrderEngineError(Exception):
    """Base class for all order engine failures."""

    status_code: int = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": type(self).__name__, "detail": self.message}


class InvalidInputError(OrderEngineError):
    """Malformed or out-of-range caller input. Fix the input and retry."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


class NotFoundError(OrderEngineError):
    """A referenced entity does not exist."""

    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["entity"] = self.entity
        data["entity_id"] = str(self.entity_id)
        return data


class IllegalTransitionError(OrderEngineError):
    """Requested status is not reachable from the current status."""

    def __init__(self, current: Any, requested: Any, message: Optional[str] = None):
        self.current = getattr(current, "value", current)
        self.requested = getattr(requested, "value", requested)
        super().__init__(
            message
            or f"Cannot move order from '{self.current}' to '{self.requested}'"
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["current_status"] = self.current
        data["requested_status"] = self.requested
        return data


class StaleStatusError(IllegalTransitionError):
    """The stored status changed between read and write."""

    status_code = 409

    def __init__(self, expected: Any, current: Any, requested: Any):
        self.expected = getattr(expected, "value", expected)
        super().__init__(
            current,
            requested,
            message=(
                f"Order status changed concurrently: expected "
                f"'{self.expected}', found '{getattr(current, 'value', current)}'"
            ),
        )
