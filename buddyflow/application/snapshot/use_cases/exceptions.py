"""Exceptions for snapshot use cases."""

from uuid import UUID

from buddyflow.domain.common.exceptions import EntityNotFoundError, ValidationError


class TemplateNotFoundError(EntityNotFoundError):
    """Template not found error."""

    def __init__(self, template_id: int) -> None:
        super().__init__("FlowTemplate", template_id)
        self.template_id = template_id


class SnapshotNotFoundError(EntityNotFoundError):
    """Flow snapshot not found error."""

    def __init__(self, snapshot_id: UUID) -> None:
        super().__init__("FlowSnapshot", snapshot_id)
        self.snapshot_id = snapshot_id


class SnapshotValidationError(ValidationError):
    """A template failed validation; carries every error and warning found."""

    def __init__(self, errors: tuple[str, ...], warnings: tuple[str, ...] = ()) -> None:
        super().__init__(f"Template is not valid for snapshotting: {'; '.join(errors)}")
        self.details["errors"] = list(errors)
        if warnings:
            self.details["warnings"] = list(warnings)
        self.errors = errors
        self.warnings = warnings
