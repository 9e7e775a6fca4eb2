"""
Progress bounded context - Domain layer.

Tracks one learner's work on each component of a frozen snapshot tree,
checks submitted answers, and decides which steps are unlocked.

Aggregates:
- ComponentProgress: per (learner, assignment, component) progress record
"""
