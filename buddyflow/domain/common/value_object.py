"""Value-equality base for snapshot content and typed identifiers."""


class ValueObject:
    """
    Compared and hashed by attributes rather than identity.

    Subclasses are frozen dataclasses that check their own invariants in
    ``__post_init__`` and raise ``ValidationError`` on bad input.
    """

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __hash__(self) -> int:
        return hash(tuple(sorted(self.__dict__.items())))

    def __repr__(self) -> str:
        attrs = ", ".join(f"{k}={v!r}" for k, v in self.__dict__.items())
        return f"{self.__class__.__name__}({attrs})"
