"""Client-side exceptions.

The API layer raises these; operations catch them at the mutation call
site and turn them into user-facing notifications. Nothing here is meant
to reach a crash boundary.
"""

from typing import Any, Dict, List


class HekateError(Exception):
    """Base class for every error raised by the client."""


class ApiRequestError(HekateError):
    """Non-2xx response or transport failure.

    No distinction is drawn between network, 4xx and 5xx failures beyond
    the optional status code.
    """

    def __init__(self, message: str, status_code: int | None = None, payload: Any = None):
        self.status_code = status_code
        self.payload = payload
        super().__init__(message)


class EntityNotFoundError(HekateError):
    """Entity missing from the cached server state."""

    def __init__(self, entity: str, entity_id=None):
        self.entity = entity
        self.entity_id = entity_id
        msg = f"{entity} {entity_id} not found" if entity_id else f"{entity} not found"
        super().__init__(msg)


class InvalidStatusTransitionError(HekateError):
    """Block status change not allowed by the transition table."""

    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move block from {current.value} to {target.value}")


class FormValidationError(HekateError):
    """Form input rejected before anything was sent."""

    def __init__(self, errors: Dict[str, List[str]]):
        self.errors = errors
        fields = ", ".join(sorted(errors))
        super().__init__(f"Invalid form fields: {fields}")
