from dataclasses import dataclass
from typing import ClassVar, List


@dataclass
class DomainError(Exception):
    detail: str
    title: str = "Domain Error"
    type: str = "https://example.com/problems/domain-error"
    errors: List[dict] | None = None

    status_code: ClassVar[int] = 400

    def __str__(self) -> str:
        return self.detail


@dataclass
class BlockConflictError(DomainError):
    """The requested window overlaps a block that already exists.

    Raised when the store rejects a write through the overlap constraint. Callers
    should re-run the availability search and offer alternatives.
    """

    title: str = "Conflict"
    type: str = "https://example.com/problems/availability-conflict"

    status_code: ClassVar[int] = 409


@dataclass
class BlockNotFoundError(DomainError):
    title: str = "Not Found"

    status_code: ClassVar[int] = 404


@dataclass
class BlockValidationError(DomainError):
    title: str = "Validation Error"
    type: str = "https://example.com/problems/validation-error"

    status_code: ClassVar[int] = 422
