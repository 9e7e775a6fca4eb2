"""
Sequential unlocking of steps.

This is a pure domain service with no infrastructure dependencies.
"""

from collections.abc import Mapping

from buddyflow.domain.common.value_objects import ComponentSnapshotId, StepSnapshotId
from buddyflow.domain.progress.entities.component_progress import ComponentProgress
from buddyflow.domain.snapshot.entities import ComponentSnapshot, SnapshotTree, StepSnapshot


class UnlockPolicy:
    """
    Decides which steps of a snapshot tree a learner may work on.

    The first step is always open. Each later step opens once the step
    before it is open and finished. A step is finished when every component
    is completed or was skipped where skipping is allowed: anywhere in a
    skippable step, and for optional components in any step. A step that does
    not require its predecessor opens as soon as its predecessor is open.

    Completion is read from history as well as current status, so resetting
    a component never locks a step that was already opened.
    """

    def unlocked_step_ids(
        self,
        tree: SnapshotTree,
        progress: Mapping[ComponentSnapshotId, ComponentProgress],
    ) -> list[StepSnapshotId]:
        unlocked: list[StepSnapshotId] = []
        previous: StepSnapshot | None = None
        for step in tree.ordered_steps():
            if (
                previous is not None
                and step.access.requires_previous_step_completed
                and not self.is_step_finished(tree, previous, progress)
            ):
                break
            unlocked.append(step.id)
            previous = step
        return unlocked

    def unlocked_component_ids(
        self,
        tree: SnapshotTree,
        progress: Mapping[ComponentSnapshotId, ComponentProgress],
    ) -> list[ComponentSnapshotId]:
        return [
            component.id
            for step_id in self.unlocked_step_ids(tree, progress)
            for component in tree.components_for_step(step_id)
        ]

    def is_step_finished(
        self,
        tree: SnapshotTree,
        step: StepSnapshot,
        progress: Mapping[ComponentSnapshotId, ComponentProgress],
    ) -> bool:
        return all(
            self._is_component_finished(c, step, progress.get(c.id))
            for c in tree.components_for_step(step.id)
        )

    @staticmethod
    def _is_component_finished(
        component: ComponentSnapshot, step: StepSnapshot, progress: ComponentProgress | None
    ) -> bool:
        if progress is None:
            return False
        if progress.has_been_completed:
            return True
        # Skipping only counts where it was allowed in the first place.
        return progress.has_been_skipped and (step.access.skippable or not component.is_required)
