import json

import pytest

from emitter.core.config import ConnectionConfig
from emitter.core.connection import PublisherConnection, connect
from emitter.core.message import build_message
from emitter.core.result import ErrorKind
from emitter.ports.transport import TransportError


class BufferedTransport:
    """Fake socket: frames queue on send and are delivered only while draining."""
    def __init__(self, fail_connect: bool = False, fail_send: bool = False) -> None:
        self.fail_connect = fail_connect
        self.fail_send = fail_send
        self.endpoint = None
        self.queued: list[list[bytes]] = []
        self.delivered: list[list[bytes]] = []
        self.close_calls: list[int] = []

    def connect(self, endpoint: str, join_timeout_ms: int = 0, settle_ms: int = 0) -> None:
        self.join_timeout_ms = join_timeout_ms
        if self.fail_connect:
            raise TransportError("connection refused")
        self.endpoint = endpoint

    def send(self, frames: list[bytes]) -> None:
        if self.fail_send:
            raise TransportError("relay went away")
        self.queued.append(frames)

    def close(self, linger_ms: int) -> None:
        self.close_calls.append(linger_ms)
        if linger_ms > 0:
            self.delivered.extend(self.queued)
        self.queued = []


def _message():
    return build_message("foo", 7, "failed", "org.fedoraproject", "stg", clock=lambda: 1700000000)


def test_close_drains_the_just_sent_message() -> None:
    transport = BufferedTransport()
    opened = connect(transport, ConnectionConfig("tcp://relay:9941", linger_ms=2000))
    assert opened.ok

    with opened.value as connection:
        assert connection.send(_message()).ok
        assert transport.delivered == []

    assert transport.close_calls == [2000]
    assert len(transport.delivered) == 1
    topic, body = transport.delivered[0]
    assert topic == b"org.fedoraproject.stg.jenkins.build.failed"
    assert json.loads(body)["msg"] == {"project": "foo", "build": 7}


def test_zero_linger_is_passed_through() -> None:
    transport = BufferedTransport()
    with connect(transport, ConnectionConfig("tcp://relay:9941", linger_ms=0)).value as connection:
        connection.send(_message())

    assert transport.close_calls == [0]
    assert transport.delivered == []


def test_close_runs_when_the_body_raises() -> None:
    transport = BufferedTransport()
    connection = connect(transport, ConnectionConfig("tcp://relay:9941", linger_ms=500)).value

    with pytest.raises(RuntimeError):
        with connection:
            connection.send(_message())
            raise RuntimeError("boom")

    assert transport.close_calls == [500]
    assert len(transport.delivered) == 1


def test_send_failure_is_a_publish_error_and_still_closes() -> None:
    transport = BufferedTransport(fail_send=True)
    with connect(transport, ConnectionConfig("tcp://relay:9941")).value as connection:
        result = connection.send(_message())

    assert not result.ok
    assert result.failure.kind is ErrorKind.PUBLISH
    assert result.failure.stage == "send"
    assert transport.close_calls == [2000]


def test_connect_failure_is_reported_and_closed() -> None:
    transport = BufferedTransport(fail_connect=True)
    result = connect(transport, ConnectionConfig("tcp://relay:9941", linger_ms=100))

    assert not result.ok
    assert result.failure.kind is ErrorKind.PUBLISH
    assert result.failure.stage == "connect"
    assert transport.close_calls == [100]


def test_close_is_idempotent_and_blocks_later_sends() -> None:
    transport = BufferedTransport()
    connection = PublisherConnection(transport, ConnectionConfig("tcp://relay:9941"))
    connection.open()
    connection.close()
    connection.close()

    assert transport.close_calls == [2000]
    assert not connection.send(_message()).ok


def test_join_settings_reach_the_transport() -> None:
    transport = BufferedTransport()
    connect(transport, ConnectionConfig("tcp://relay:9941", join_timeout_ms=750))

    assert transport.join_timeout_ms == 750


def test_attempts_count_send_calls_even_when_they_fail() -> None:
    transport = BufferedTransport(fail_send=True)
    with connect(transport, ConnectionConfig("tcp://relay:9941")).value as connection:
        connection.send(_message())

    assert connection.attempts == 1
