"""Repository for reading flow templates."""

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from buddyflow.domain.common.value_objects import TemplateId
from buddyflow.domain.curriculum.entities.flow_template import FlowTemplate
from buddyflow.infrastructure.curriculum.mappers.flow_template_mapper import FlowTemplateMapper
from buddyflow.models import FlowTemplate as FlowTemplateORM
from buddyflow.models import TemplateStep as TemplateStepORM


class TemplateRepository:
    """Read side of flow templates; authoring happens elsewhere."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.mapper = FlowTemplateMapper()

    def get_flow_with_steps_and_components(self, template_id: TemplateId) -> FlowTemplate | None:
        """
        Load a template with its steps and their components in one round of queries.

        Args:
            template_id: The template ID

        Returns:
            FlowTemplate entity if found, None otherwise
        """
        stmt = (
            select(FlowTemplateORM)
            .where(FlowTemplateORM.id == template_id.value)
            .options(
                selectinload(FlowTemplateORM.steps).selectinload(TemplateStepORM.components)
            )
        )
        orm_model = self.db.execute(stmt).scalar_one_or_none()
        return self.mapper.to_domain(orm_model) if orm_model else None
