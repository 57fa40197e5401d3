from __future__ import annotations

from typing import Protocol


class TransportError(Exception):
    """Raised by transports for any bus-level failure."""


class Transport(Protocol):
    """Bus socket boundary used by PublisherConnection."""
    def connect(self, endpoint: str, join_timeout_ms: int = 0, settle_ms: int = 0) -> None:
        """Attach to the bus endpoint and wait until it can receive.

        Args:
            endpoint (str): Bus address, e.g. `tcp://relay.example.org:9941`.
            join_timeout_ms (int): Upper bound on waiting for the peer; 0 means
                do not wait.
            settle_ms (int): Extra pause once the peer is ready.

        Raises:
            TransportError: When the endpoint is unusable or the peer never joins.
        """
        ...

    def send(self, frames: list[bytes]) -> None:
        """Queue one multipart message for delivery.

        Args:
            frames (list[bytes]): Topic frame followed by the JSON body frame.
        """
        ...

    def close(self, linger_ms: int) -> None:
        """Release the socket, waiting up to `linger_ms` for queued frames to drain."""
        ...
