"""
Domain layer exceptions.

These exceptions represent domain-level errors that occur when
business rules are violated or domain invariants are broken.
Callers catch them and translate them to whatever their transport needs.
"""


class DomainError(Exception):
    """
    Base exception for all domain errors.

    All domain exceptions should inherit from this class
    so they can be caught and handled uniformly.
    """

    def __init__(self, message: str, details: dict[str, object] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class ValidationError(DomainError):
    """
    Raised when input or state validation fails.

    Example: A quiz without a correct option, a negative time delta,
    or an assignment transition from the wrong state.
    """

    def __init__(self, message: str, field: str | None = None, value: object = None) -> None:
        details: dict[str, object] = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = value
        super().__init__(message, details)
        self.field = field
        self.value = value


class NotFoundError(DomainError):
    """Raised when a requested object does not exist."""


class EntityNotFoundError(NotFoundError):
    """
    Raised when an entity cannot be found by its identifier.

    Example: Looking up an assignment by ID that doesn't exist.
    """

    def __init__(self, entity_type: str, entity_id: object) -> None:
        message = f"{entity_type} with id {entity_id} not found"
        super().__init__(message, {"entity_type": entity_type, "entity_id": entity_id})
        self.entity_type = entity_type
        self.entity_id = entity_id


class BusinessRuleViolationError(DomainError):
    """
    Raised when a business rule is violated.

    Example: Submitting an answer after every attempt has been used.
    """

    def __init__(self, rule: str, message: str | None = None) -> None:
        msg = message or f"Business rule violated: {rule}"
        super().__init__(msg, {"rule": rule})
        self.rule = rule


class InvariantViolationError(DomainError):
    """
    Raised when an aggregate invariant is violated.

    Invariants are rules that must always be true for an aggregate
    to be in a valid state.

    Example: A step snapshot whose component count disagrees with its metadata.
    """

    def __init__(self, aggregate: str, invariant: str) -> None:
        message = f"Invariant violation in {aggregate}: {invariant}"
        super().__init__(message, {"aggregate": aggregate, "invariant": invariant})
        self.aggregate = aggregate
        self.invariant = invariant


class AuthorizationError(DomainError):
    """
    Raised when an operation is not authorized.

    Example: A learner trying to cancel their own assignment.
    """

    def __init__(self, message: str = "Not authorized to perform this action") -> None:
        super().__init__(message)
