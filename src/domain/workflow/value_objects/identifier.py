import re
from dataclasses import dataclass
from uuid import uuid4

from src.domain.workflow.exceptions import InvalidIdentifierError

UUID4_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class Identifier:
    """
    Immutable UUID v4 identifier for aggregates.

    Construct through `generate()` or `parse()`; equality and hashing are by value.
    """

    value: str

    @classmethod
    def generate(cls) -> "Identifier":
        return cls(str(uuid4()))

    @classmethod
    def parse(cls, raw: str) -> "Identifier":
        if not isinstance(raw, str) or not UUID4_PATTERN.fullmatch(raw):
            raise InvalidIdentifierError(str(raw))
        return cls(raw.lower())

    def equals(self, other: object) -> bool:
        return self == other

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ReadableIdentifier:
    """Relaxed identifier for nodes: any non-empty string once stripped."""

    value: str

    @classmethod
    def generate(cls) -> "ReadableIdentifier":
        return cls(str(uuid4()))

    @classmethod
    def parse(cls, raw: str) -> "ReadableIdentifier":
        if not isinstance(raw, str) or not raw.strip():
            raise InvalidIdentifierError(str(raw), expected="non-empty string")
        return cls(raw.strip())

    def equals(self, other: object) -> bool:
        return self == other

    def __str__(self) -> str:
        return self.value
