from __future__ import annotations

import time

import zmq

from emitter.ports.transport import TransportError

_SUBSCRIBE = 1


class ZmqTransport:
    """Publish to a fedmsg relay over a ZeroMQ XPUB socket.

    Each instance owns a private context so that terminating it waits only on
    this socket's queued frames, bounded by the socket's LINGER option. XPUB
    behaves like PUB on the wire but surfaces subscription frames, which lets
    `connect` wait until the relay can actually receive.
    """
    def __init__(self) -> None:
        self._context: zmq.Context | None = None
        self._socket: zmq.Socket | None = None

    def connect(self, endpoint: str, join_timeout_ms: int = 0, settle_ms: int = 0) -> None:
        """Connect to the relay and wait for it to subscribe.

        Args:
            endpoint (str): Relay address, e.g. `tcp://relay.example.org:9941`.
            join_timeout_ms (int): Upper bound on waiting for the first
                subscription; 0 skips the wait.
            settle_ms (int): Extra pause after the relay joined.

        Notes:
            PUB-style sockets discard frames for peers that have not
            subscribed yet, so sending right after connect loses the message.
        """
        try:
            self._context = zmq.Context()
            self._socket = self._context.socket(zmq.XPUB)
            self._socket.connect(endpoint)
        except zmq.ZMQError as exc:
            self._abandon()
            raise TransportError(f"cannot connect to {endpoint}: {exc}") from exc

        if join_timeout_ms > 0 and not self._wait_for_subscriber(join_timeout_ms):
            self._abandon()
            raise TransportError(f"no subscriber on {endpoint} joined within {join_timeout_ms}ms")
        if settle_ms > 0:
            time.sleep(settle_ms / 1000)

    def send(self, frames: list[bytes]) -> None:
        if self._socket is None:
            raise TransportError("transport is not connected")
        try:
            self._socket.send_multipart(frames)
        except zmq.ZMQError as exc:
            raise TransportError(f"send failed: {exc}") from exc

    def close(self, linger_ms: int) -> None:
        socket, context = self._socket, self._context
        self._socket = None
        self._context = None
        try:
            if socket is not None:
                socket.close(linger=max(int(linger_ms), 0))
            if context is not None:
                # Blocks until queued frames are flushed or LINGER expires.
                context.term()
        except zmq.ZMQError as exc:
            raise TransportError(f"close failed: {exc}") from exc

    def _wait_for_subscriber(self, join_timeout_ms: int) -> bool:
        deadline = time.monotonic() + join_timeout_ms / 1000
        while True:
            remaining_ms = int((deadline - time.monotonic()) * 1000)
            if remaining_ms <= 0:
                return False
            try:
                if not self._socket.poll(remaining_ms, zmq.POLLIN):
                    return False
                frame = self._socket.recv(zmq.NOBLOCK)
            except zmq.ZMQError as exc:
                raise TransportError(f"waiting for subscriber failed: {exc}") from exc
            if frame and frame[0] == _SUBSCRIBE:
                return True

    def _abandon(self) -> None:
        """Drop the socket without draining; nothing was sent yet."""
        if self._context is not None:
            self._context.destroy(linger=0)
        self._socket = None
        self._context = None
