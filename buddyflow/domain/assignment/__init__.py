"""
Assignment bounded context - Domain layer.

An assignment ties one learner and their mentors to one flow snapshot,
with a deadline and a lifecycle status.

Aggregates:
- Assignment: lifecycle state machine, deadline and its audit trail
"""
