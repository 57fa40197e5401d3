from __future__ import annotations

import logging

from emitter.core.config import ConnectionConfig
from emitter.core.message import encode_message
from emitter.core.models import Message, SignedMessage
from emitter.core.result import ErrorKind, Ok, Result, err
from emitter.ports.transport import Transport, TransportError

logger = logging.getLogger(__name__)


class PublisherConnection:
    """One bus connection, scoped to a single pipeline invocation.

    Use it as a context manager: `close` runs on every exit path and always
    waits up to the configured linger so a just-sent message is not dropped.
    """
    def __init__(self, transport: Transport, config: ConnectionConfig) -> None:
        self.transport = transport
        self.config = config
        self.connected = False
        self.closed = False
        self.attempts = 0

    def open(self) -> Result:
        try:
            self.transport.connect(
                self.config.endpoint,
                join_timeout_ms=self.config.join_timeout_ms,
                settle_ms=self.config.settle_ms,
            )
        except TransportError as exc:
            return err(ErrorKind.PUBLISH, "connect", str(exc))
        self.connected = True
        logger.debug("Connected to %s (linger %sms)", self.config.endpoint, self.config.linger_ms)
        return Ok(self)

    def send(self, message: Message | SignedMessage) -> Result:
        """Serialize and transmit one message.

        Returns:
            Result: Ok(None) once the transport accepted the frames, Err with
                SerializationError or PublishError otherwise.
        """
        if not self.connected or self.closed:
            return err(ErrorKind.PUBLISH, "send", "connection is not open")
        encoded = encode_message(message)
        if not encoded.ok:
            return encoded
        self.attempts += 1
        try:
            self.transport.send(encoded.value)
        except TransportError as exc:
            return err(ErrorKind.PUBLISH, "send", str(exc))
        return Ok(None)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self.transport.close(self.config.linger_ms)
        except TransportError as exc:
            # Nothing left to release; the send result already reflects delivery.
            logger.warning("Error while closing connection to %s: %s", self.config.endpoint, exc)

    def __enter__(self) -> "PublisherConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def connect(transport: Transport, config: ConnectionConfig) -> Result:
    """Open a PublisherConnection; on failure the transport is already closed."""
    connection = PublisherConnection(transport, config)
    opened = connection.open()
    if not opened.ok:
        connection.close()
    return opened
