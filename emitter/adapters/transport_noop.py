from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class NoopTransport:
    """Transport for dry runs: frames are logged and discarded."""
    endpoint: str | None = None
    discarded: int = 0

    def connect(self, endpoint: str, join_timeout_ms: int = 0, settle_ms: int = 0) -> None:
        self.endpoint = endpoint

    def send(self, frames: list[bytes]) -> None:
        self.discarded += 1
        logger.info("Dry run, not publishing to %s: %s", self.endpoint, frames[0].decode("utf-8"))

    def close(self, linger_ms: int) -> None:
        return None
