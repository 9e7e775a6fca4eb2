"""Use case for freezing flow templates into snapshot trees."""

import time
from collections.abc import Mapping
from typing import Any
from uuid import UUID

import structlog

from buddyflow.application.common.clock import ClockProtocol
from buddyflow.application.snapshot.protocols.snapshot_store import SnapshotStoreProtocol
from buddyflow.application.snapshot.protocols.template_reader import TemplateReaderProtocol
from buddyflow.application.snapshot.use_cases.dtos import (
    SnapshotContext,
    SnapshotCreationResult,
    SnapshotStats,
)
from buddyflow.application.snapshot.use_cases.exceptions import (
    SnapshotNotFoundError,
    SnapshotValidationError,
    TemplateNotFoundError,
)
from buddyflow.domain.common.value_objects import AssignmentId, FlowSnapshotId, TemplateId, UserId
from buddyflow.domain.snapshot.entities import FlowSnapshot, SnapshotTree
from buddyflow.domain.snapshot.services.snapshot_factory import SnapshotFactory
from buddyflow.domain.snapshot.services.template_validator import TemplateValidator
from buddyflow.exceptions import StorageError


class SnapshotUseCase:
    """Use case for creating, reading and purging snapshot trees."""

    def __init__(
        self,
        template_reader: TemplateReaderProtocol,
        snapshot_store: SnapshotStoreProtocol,
        clock: ClockProtocol,
        snapshot_factory: SnapshotFactory | None = None,
        template_validator: TemplateValidator | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize use case with its collaborators."""
        self.template_reader = template_reader
        self.snapshot_store = snapshot_store
        self.clock = clock
        self.snapshot_factory = snapshot_factory or SnapshotFactory()
        self.template_validator = template_validator or TemplateValidator()
        self.logger = logger or structlog.get_logger(__name__)

    def create_flow_snapshot(
        self, template_id: int, context: SnapshotContext
    ) -> SnapshotCreationResult:
        """
        Freeze a template into a new, persisted snapshot tree.

        Args:
            template_id: ID of the template to freeze
            context: Creator, optional owning assignment and free-form context

        Returns:
            The stored tree with creation statistics and validation warnings

        Raises:
            TemplateNotFoundError: If the template does not exist
            SnapshotValidationError: If the template has any validation errors
            StorageError: If the tree could not be stored; nothing was written
        """
        started = time.perf_counter()
        template_id_vo = TemplateId(template_id)

        template = self.template_reader.get_flow_with_steps_and_components(template_id_vo)
        if template is None:
            raise TemplateNotFoundError(template_id)

        report = self.template_validator.validate(template)
        if not report.is_valid:
            self.logger.info(
                "snapshot_template_rejected",
                template_id=template_id,
                errors=list(report.errors),
                warnings=list(report.warnings),
            )
            raise SnapshotValidationError(report.errors, report.warnings)

        tree = self.snapshot_factory.build(
            template,
            created_by=UserId(context.created_by),
            created_at=self.clock.now(),
            assignment_id=AssignmentId(context.assignment_id) if context.assignment_id else None,
            context=context.extra,
        )

        try:
            tree = self.snapshot_store.create_snapshot_tree(tree)
        except StorageError:
            self.logger.exception(
                "snapshot_persist_failed", template_id=template_id, snapshot_id=str(tree.flow.id)
            )
            raise

        stats = SnapshotStats(
            total_steps=tree.total_steps,
            total_components=tree.total_components,
            creation_duration_ms=round((time.perf_counter() - started) * 1000, 3),
            size_bytes=tree.flow.metadata.size_bytes,
        )
        self.logger.info(
            "created_flow_snapshot",
            snapshot_id=str(tree.flow.id),
            template_id=template_id,
            template_version=template.version,
            total_steps=stats.total_steps,
            total_components=stats.total_components,
            duration_ms=stats.creation_duration_ms,
        )
        return SnapshotCreationResult(tree=tree, stats=stats, warnings=report.warnings)

    def get_snapshot_tree(self, snapshot_id: UUID) -> SnapshotTree:
        """
        Load a complete snapshot tree.

        Raises:
            SnapshotNotFoundError: If the snapshot does not exist
        """
        tree = self.snapshot_store.get_snapshot_tree(FlowSnapshotId(snapshot_id))
        if tree is None:
            raise SnapshotNotFoundError(snapshot_id)
        return tree

    def merge_snapshot_context(self, snapshot_id: UUID, extra: Mapping[str, Any]) -> FlowSnapshot:
        """
        Merge ``extra`` into a snapshot's context.

        Only the context changes; the returned snapshot is a new value and
        any previously loaded copy is left as it was.

        Raises:
            SnapshotNotFoundError: If the snapshot does not exist
        """
        snapshot_id_vo = FlowSnapshotId(snapshot_id)
        flow = self.snapshot_store.get_flow_snapshot(snapshot_id_vo)
        if flow is None:
            raise SnapshotNotFoundError(snapshot_id)

        merged = flow.with_context(extra)
        self.snapshot_store.update_context(snapshot_id_vo, merged.context_dict())
        self.logger.info(
            "merged_snapshot_context", snapshot_id=str(snapshot_id), keys=sorted(extra)
        )
        return merged

    def purge_snapshot(self, snapshot_id: UUID) -> None:
        """
        Delete a snapshot tree and all progress recorded against it.

        This is the administrative purge; snapshots are never deleted otherwise.

        Raises:
            SnapshotNotFoundError: If the snapshot does not exist
        """
        if not self.snapshot_store.delete_snapshot_tree(FlowSnapshotId(snapshot_id)):
            raise SnapshotNotFoundError(snapshot_id)
        self.logger.warning("purged_flow_snapshot", snapshot_id=str(snapshot_id))
