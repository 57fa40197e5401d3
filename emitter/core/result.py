from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class ErrorKind(str, Enum):
    NO_RESULT = "NoResult"
    SERIALIZATION = "SerializationError"
    SIGNING = "SigningError"
    PUBLISH = "PublishError"


@dataclass(frozen=True)
class Failure:
    """Why a pipeline stage stopped, kept as a value instead of an exception."""
    kind: ErrorKind
    stage: str
    detail: str

    def describe(self) -> str:
        return f"stage={self.stage} reason={self.kind.value} detail={self.detail}"


@dataclass(frozen=True)
class Ok:
    value: Any = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    failure: Failure

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok, Err]


def err(kind: ErrorKind, stage: str, detail: str) -> Err:
    return Err(Failure(kind=kind, stage=stage, detail=detail))
