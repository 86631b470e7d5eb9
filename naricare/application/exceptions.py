class InvalidRoleError(ValueError):
    """Raised when a viewer role is neither client nor expert."""
    pass


class PolicyConfigurationError(ValueError):
    """Raised for an unusable window or slot configuration (inverted bounds, non-positive duration)."""
    pass


class InvalidStatusTransitionError(ValueError):
    """Raised when a status change would move a consultation backwards or out of a terminal state."""
    pass


class ConsultationNotFoundError(LookupError):
    pass


class ConsultationStoreError(RuntimeError):
    """Raised when the consultation backend is unreachable or answers with a failure."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConsultationConflictError(ConsultationStoreError):
    """Raised on create when the expert already has an active consultation too close to the requested time."""
    pass
