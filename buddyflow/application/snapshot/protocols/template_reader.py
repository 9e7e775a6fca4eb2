"""Protocol for reading curriculum templates."""

from typing import Protocol

from buddyflow.domain.common.value_objects import TemplateId
from buddyflow.domain.curriculum.entities.flow_template import FlowTemplate


class TemplateReaderProtocol(Protocol):
    def get_flow_with_steps_and_components(self, template_id: TemplateId) -> FlowTemplate | None:
        """
        Load a template with its steps and components.

        Args:
            template_id: The template ID

        Returns:
            FlowTemplate with steps and components populated, None if not found
        """
        ...
