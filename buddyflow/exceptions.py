"""Infrastructure exceptions raised at the persistence boundary."""


class BuddyflowError(Exception):
    """Base exception for non-domain buddyflow errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class StorageError(BuddyflowError):
    """Persistence failure. Retry policy, if any, belongs to the caller."""


class ConcurrentUpdateError(StorageError):
    """A compare-and-swap write lost the race against another writer."""

    def __init__(self, entity_type: str, entity_id: object, expected_version: int) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_version = expected_version
        super().__init__(
            f"{entity_type} {entity_id} was modified concurrently "
            f"(expected version {expected_version})"
        )
