from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    INSUFFICIENT_DATA = "insufficient_data"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str
    detail: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "kind": self.kind.value, **self.detail}


Result = Union[Ok[T], Err]


def insufficient(entries_found: int, minimum: int, what: str) -> Err:
    return Err(
        ErrorKind.INSUFFICIENT_DATA,
        f"Insufficient data for {what}: {entries_found} entries (minimum {minimum})",
        {"entries_found": entries_found, "minimum": minimum},
    )
