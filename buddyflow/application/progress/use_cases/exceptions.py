"""Exceptions for progress use cases."""

from uuid import UUID

from buddyflow.domain.common.exceptions import EntityNotFoundError


class ComponentNotFoundError(EntityNotFoundError):
    """Component snapshot not found in the assignment's snapshot."""

    def __init__(self, component_snapshot_id: UUID) -> None:
        super().__init__("ComponentSnapshot", component_snapshot_id)
        self.component_snapshot_id = component_snapshot_id


class ProgressNotFoundError(EntityNotFoundError):
    """No progress has been recorded for the component yet."""

    def __init__(self, component_snapshot_id: UUID) -> None:
        super().__init__("ComponentProgress", component_snapshot_id)
        self.component_snapshot_id = component_snapshot_id
