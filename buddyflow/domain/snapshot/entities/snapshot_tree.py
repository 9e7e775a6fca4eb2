"""
SnapshotTree aggregate.

Bundles one FlowSnapshot with its StepSnapshots and ComponentSnapshots and
answers the ordering questions the progress engine asks of it.
"""

from dataclasses import dataclass

from buddyflow.domain.common.exceptions import InvariantViolationError
from buddyflow.domain.common.value_objects import ComponentSnapshotId, StepSnapshotId

from .component_snapshot import ComponentSnapshot
from .flow_snapshot import FlowSnapshot
from .step_snapshot import StepSnapshot


@dataclass(frozen=True)
class SnapshotTree:
    """
    A complete, consistent three-level snapshot.

    Business Rules:
    - Every step id listed by the flow is present, and only those
    - Every component id listed by a step is present, and only those
    """

    flow: FlowSnapshot
    steps: tuple[StepSnapshot, ...]
    components: tuple[ComponentSnapshot, ...]

    def __post_init__(self) -> None:
        """Validate that the three levels reference each other exactly."""
        if {s.id for s in self.steps} != set(self.flow.step_ids):
            raise InvariantViolationError("SnapshotTree", "steps do not match flow step ids")
        for step in self.steps:
            if step.flow_snapshot_id != self.flow.id:
                raise InvariantViolationError(
                    "SnapshotTree", f"step {step.id} belongs to another flow"
                )
        listed = {cid for step in self.steps for cid in step.component_ids}
        if {c.id for c in self.components} != listed:
            raise InvariantViolationError(
                "SnapshotTree", "components do not match step component ids"
            )

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def total_components(self) -> int:
        return len(self.components)

    def ordered_steps(self) -> list[StepSnapshot]:
        return sorted(self.steps, key=lambda s: s.order)

    def components_for_step(self, step_id: StepSnapshotId) -> list[ComponentSnapshot]:
        """Components of a step, in order."""
        return sorted(
            (c for c in self.components if c.step_snapshot_id == step_id),
            key=lambda c: c.order,
        )

    def get_step(self, step_id: StepSnapshotId) -> StepSnapshot | None:
        return next((s for s in self.steps if s.id == step_id), None)

    def get_component(self, component_id: ComponentSnapshotId) -> ComponentSnapshot | None:
        return next((c for c in self.components if c.id == component_id), None)

    def step_of(self, component: ComponentSnapshot) -> StepSnapshot:
        step = self.get_step(component.step_snapshot_id)
        if step is None:
            raise InvariantViolationError(
                "SnapshotTree", f"component {component.id} has no parent step"
            )
        return step

    def first_step(self) -> StepSnapshot | None:
        steps = self.ordered_steps()
        return steps[0] if steps else None

    def last_step(self) -> StepSnapshot | None:
        steps = self.ordered_steps()
        return steps[-1] if steps else None

    def next_step(self, step_id: StepSnapshotId) -> StepSnapshot | None:
        steps = self.ordered_steps()
        for index, step in enumerate(steps[:-1]):
            if step.id == step_id:
                return steps[index + 1]
        return None

    def previous_step(self, step_id: StepSnapshotId) -> StepSnapshot | None:
        steps = self.ordered_steps()
        for index, step in enumerate(steps[1:], start=1):
            if step.id == step_id:
                return steps[index - 1]
        return None
