"""
ContentHash value object.

Fingerprints the frozen content of a snapshot tree so two snapshots taken
from the same template revision can be recognised as equal in content.
"""

import hashlib
import json
from dataclasses import dataclass
from typing import Any, Self

_CONTENT_HASH_LENGTH = 64


@dataclass(frozen=True)
class ContentHash:
    """SHA-256 hash of canonical content."""

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("ContentHash cannot be empty")

        if len(self.value) != _CONTENT_HASH_LENGTH:
            raise ValueError("ContentHash must be 64 character hex string (SHA-256)")

        try:
            int(self.value, 16)
        except ValueError as err:
            raise ValueError("ContentHash must be valid hexadecimal string") from err

    @classmethod
    def compute(cls, content: str) -> Self:
        """
        Compute ContentHash from string content.

        Args:
            content: Text content to hash

        Returns:
            ContentHash instance with computed hash
        """
        if not content:
            raise ValueError("Cannot compute hash of empty content")

        return cls(hashlib.sha256(content.encode("utf-8")).hexdigest())

    @classmethod
    def compute_from_data(cls, data: Any) -> Self:
        """Hash JSON-compatible data after canonicalising key order."""
        return cls.compute(json.dumps(data, ensure_ascii=False, sort_keys=True, default=str))
