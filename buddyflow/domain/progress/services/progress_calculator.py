"""
Aggregation of component completion into step and flow percentages.

This is a pure domain service with no infrastructure dependencies.
"""

from buddyflow.domain.progress.services.answer_validators import round_half_up


class ProgressCalculator:
    def step_percent(self, completed: int, total: int) -> int:
        """Share of a step's components completed; an empty step counts as done."""
        if total == 0:
            return 100
        return round_half_up(100 * completed / total)

    def flow_percent(self, step_percents: list[int]) -> int:
        """Unweighted mean of step percentages."""
        if not step_percents:
            return 0
        return round_half_up(sum(step_percents) / len(step_percents))
