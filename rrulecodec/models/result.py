"""Tagged success/error results returned across the operation boundary."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, TypeVar, Union

from pydantic import BaseModel, Field

T = TypeVar("T")


class ErrorPayload(BaseModel):
    """Structured error data; ``message`` is informational, ``details`` is authoritative."""

    kind: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    ok: bool = True


@dataclass(frozen=True)
class Err:
    error: ErrorPayload
    ok: bool = False


Result = Union[Ok[T], Err]
