import json

from emitter.core.message import build_message, encode_message, split_identity
from emitter.core.models import BuildPayload, Message


def _fixed_clock() -> float:
    return 1700000000.75


def test_matrix_identity_sets_configuration() -> None:
    message = build_message("foo » debug", 42, "passed", "org.fedoraproject", "prod", 1, clock=_fixed_clock)

    assert message.topic == "org.fedoraproject.prod.jenkins.build.passed"
    assert message.payload.to_dict() == {"project": "foo", "build": 42, "configuration": "debug"}
    assert message.timestamp == 1700000000
    assert message.sequence == 1


def test_plain_identity_has_no_configuration_key() -> None:
    message = build_message("foo", 7, "failed", "org.fedoraproject", "stg", 1, clock=_fixed_clock)

    assert message.topic == "org.fedoraproject.stg.jenkins.build.failed"
    assert message.payload.to_dict() == {"project": "foo", "build": 7}
    assert "configuration" not in message.to_wire()["msg"]


def test_blank_prefix_falls_back_to_default() -> None:
    message = build_message("foo", 1, "unknown", "", "dev", clock=_fixed_clock)
    assert message.topic == "org.fedoraproject.dev.jenkins.build.unknown"


def test_split_identity_without_spaces_is_not_a_delimiter() -> None:
    assert split_identity("foo»bar") == ("foo»bar", None)
    assert split_identity("parent » arch=x86_64,label=el9") == ("parent", "arch=x86_64,label=el9")


def test_wire_schema_matches_fedmsg_envelope() -> None:
    message = build_message("foo", 3, "passed", "org.fedoraproject", "prod", clock=_fixed_clock)
    wire = message.to_wire()
    assert wire == {
        "topic": "org.fedoraproject.prod.jenkins.build.passed",
        "msg": {"project": "foo", "build": 3},
        "timestamp": 1700000000,
        "i": 1,
    }


def test_encode_message_produces_topic_and_body_frames() -> None:
    message = build_message("foo » debug", 42, "passed", "org.fedoraproject", "prod", clock=_fixed_clock)
    result = encode_message(message)

    assert result.ok
    topic, body = result.value
    assert topic == b"org.fedoraproject.prod.jenkins.build.passed"
    assert json.loads(body.decode("utf-8"))["msg"]["configuration"] == "debug"


def test_encode_message_reports_serialization_error() -> None:
    message = Message(topic="t", payload=BuildPayload(project="foo", build=object()), timestamp=0)
    result = encode_message(message)

    assert not result.ok
    assert result.failure.kind.value == "SerializationError"
    assert result.failure.stage == "serialize"
