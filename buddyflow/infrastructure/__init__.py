"""
Infrastructure layer.

Implementations of the ports defined in the application layer:

- Persistence (SQLAlchemy repositories and ORM mappers)
- Time and business-calendar services

This layer depends on domain and application layers,
but they do not depend on it.
"""
