"""
Platform-wide exception hierarchy.

Services raise these; blueprints register handlers against them once and
get consistent HTTP status codes everywhere.  Every exception is raised
synchronously by the operation that detected it.  Nothing here is retried
automatically.

Usage:
    from nomination_portal.core.exceptions import NotFoundError, IllegalTransition

    raise NotFoundError(resource="Application", resource_id=app_id)
    raise IllegalTransition("approved", "approve")
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Maps to HTTP 404.

    Args:
        resource: Human-readable model/entity name (e.g. "Application").
        resource_id: The PK that was looked up. Included in logs, not in HTTP response.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when well-formed input violates a business rule.

    Distinct from HTTP 400 (malformed input, caught in blueprint).
    Maps to HTTP 422.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class AuthenticationRequired(Exception):
    """No valid principal on a call that needs one.  Maps to HTTP 401."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class Forbidden(Exception):
    """The authorization gate denied the operation.  Maps to HTTP 403.

    The HTTP body never carries ``reason``: telling a caller *why* they were
    denied would reveal organisational structure.  ``reason`` is for the
    server log only.
    """

    public_message = "Not permitted"

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason
        super().__init__(self.public_message)


class IllegalTransition(Exception):
    """The state machine was asked for a transition that does not exist.

    Raised for any transition out of ``draft`` via approve/reject, out of a
    terminal status, or for a ``to_status`` override outside the legal
    table.  The UI should never offer such an action, so this is logged as a
    warning even though it maps to HTTP 400.
    """

    def __init__(self, current_status: str, action: str, reason: str | None = None) -> None:
        self.current_status = str(current_status)
        self.action = action
        self.reason = reason
        msg = f"Cannot '{action}' from status '{self.current_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ConflictError(Exception):
    """Raised when an operation conflicts with the current resource state.

    Maps to HTTP 409.
    """


class VotingAlreadyClosed(ConflictError):
    """A vote or close arrived after the committee decision was finalised."""

    def __init__(self, application_id: str) -> None:
        self.application_id = application_id
        super().__init__(f"Voting for application {application_id} is already closed")


class StaleStateConflict(ConflictError):
    """The application moved on between read and write (lost race).

    The caller should refetch and decide again; the core never retries.
    """

    def __init__(self, application_id: str, expected_status: str) -> None:
        self.application_id = application_id
        self.expected_status = str(expected_status)
        super().__init__(
            f"Application {application_id} is no longer at status '{self.expected_status}'"
        )
