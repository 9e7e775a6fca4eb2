"""
Snapshot bounded context - Domain layer.

A snapshot is an immutable deep copy of a flow template, taken once per
assignment. Learners always work against their snapshot, so later template
edits never change an in-progress experience.

Aggregates:
- SnapshotTree: FlowSnapshot -> StepSnapshot[] -> ComponentSnapshot[]
"""
