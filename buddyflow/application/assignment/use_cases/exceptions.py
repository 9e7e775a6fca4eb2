"""Exceptions for assignment use cases."""

from buddyflow.domain.common.exceptions import EntityNotFoundError


class AssignmentNotFoundError(EntityNotFoundError):
    """Assignment not found error."""

    def __init__(self, assignment_id: int) -> None:
        super().__init__("Assignment", assignment_id)
        self.assignment_id = assignment_id
