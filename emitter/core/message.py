from __future__ import annotations

import json
import time
from typing import Any, Callable

from emitter.core.models import BuildPayload, Message, SignedMessage
from emitter.core.result import ErrorKind, Ok, Result, err

# Jenkins joins a matrix parent and its axis combination with this token.
IDENTITY_DELIMITER = " » "
# Envelope schema version carried in the `i` field, not a counter.
SCHEMA_VERSION = 1
DEFAULT_TOPIC_PREFIX = "org.fedoraproject"


def split_identity(project_identity: str) -> tuple[str, str | None]:
    project, sep, configuration = project_identity.partition(IDENTITY_DELIMITER)
    if not sep:
        return project_identity, None
    return project, configuration


def build_topic(topic_prefix: str, environment: str, status: str) -> str:
    prefix = topic_prefix or DEFAULT_TOPIC_PREFIX
    return f"{prefix}.{environment}.jenkins.build.{status}"


def build_message(
    project_identity: str,
    build_number: int,
    status: str,
    topic_prefix: str,
    environment: str,
    sequence: int = SCHEMA_VERSION,
    clock: Callable[[], float] | None = None,
) -> Message:
    """Assemble the message envelope for one finished build.

    Args:
        project_identity (str): Job name, optionally `parent » configuration`.
        build_number (int): Jenkins build number.
        status (str): Keyword from `map_status`.
        topic_prefix (str): Topic namespace, e.g. `org.fedoraproject`.
        environment (str): Environment shortname such as `prod` or `stg`.
        sequence (int): Envelope schema version.
        clock (Callable[[], float] | None): Source of epoch seconds, defaults
            to `time.time`.

    Returns:
        Message: Immutable envelope ready for signing or sending.
    """
    project, configuration = split_identity(project_identity)
    payload = BuildPayload(project=project, build=int(build_number), configuration=configuration)
    return Message(
        topic=build_topic(topic_prefix, environment, status),
        payload=payload,
        timestamp=int((clock or time.time)()),
        sequence=sequence,
    )


def canonical_json(data: dict[str, Any]) -> bytes:
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def encode_message(message: Message | SignedMessage) -> Result:
    """Serialize a message to its multipart wire frames `[topic, body]`."""
    try:
        body = canonical_json(message.to_wire())
        topic = message.topic.encode("utf-8")
    except (TypeError, ValueError) as exc:
        return err(ErrorKind.SERIALIZATION, "serialize", str(exc))
    return Ok([topic, body])
