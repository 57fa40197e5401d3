from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any

from emitter.core.status import BuildOutcome


@dataclass(frozen=True)
class BuildPayload:
    """Body of a build message (the `msg` field on the wire)."""
    project: str
    build: int
    configuration: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"project": self.project, "build": self.build}
        if self.configuration is not None:
            data["configuration"] = self.configuration
        return data


@dataclass(frozen=True)
class Message:
    topic: str
    payload: BuildPayload
    timestamp: int
    sequence: int = 1

    def to_wire(self) -> dict[str, Any]:
        return {
            "topic": self.topic,
            "msg": self.payload.to_dict(),
            "timestamp": self.timestamp,
            "i": self.sequence,
        }


@dataclass(frozen=True)
class SignedMessage:
    """A message plus a detached signature over its canonical form."""
    message: Message
    signature: bytes
    certificate_pem: bytes

    @property
    def topic(self) -> str:
        return self.message.topic

    def to_wire(self) -> dict[str, Any]:
        data = self.message.to_wire()
        data["signature"] = base64.b64encode(self.signature).decode("ascii")
        data["certificate"] = base64.b64encode(self.certificate_pem).decode("ascii")
        data["crypto"] = "x509"
        return data


@dataclass(frozen=True)
class BuildContext:
    """What the host build system hands over for one finished build.

    `outcome` is None while the build is still running.
    """
    project_identity: str
    build_number: int
    outcome: BuildOutcome | str | None
