from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from emitter.core.config import PipelineConfig
from emitter.core.connection import connect
from emitter.core.message import build_message, encode_message
from emitter.core.models import BuildContext, Message, SignedMessage
from emitter.core.result import ErrorKind, Failure
from emitter.core.signing import sign_message
from emitter.core.status import map_status
from emitter.ports.key_store import KeyStore
from emitter.ports.transport import Transport

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    START = "start"
    OUTCOME_FETCHED = "outcome_fetched"
    MESSAGE_BUILT = "message_built"
    SIGNED = "signed"
    SENT = "sent"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class PipelineOutcome:
    """Terminal state of one run; `reached` is the last stage that completed."""
    state: PipelineState
    failure: Failure | None = None
    message: Message | SignedMessage | None = None
    publish_attempts: int = 0
    reached: PipelineState = PipelineState.START

    @property
    def ok(self) -> bool:
        return self.state in {PipelineState.SENT, PipelineState.SKIPPED}


class Pipeline:
    """Turn a finished build into one bus message.

    Stages run strictly in order (status, message, optional signature,
    publish) and the first failure ends the run; nothing after it is tried.
    """
    def __init__(
        self,
        config: PipelineConfig,
        transport_factory: Callable[[], Transport],
        key_store: KeyStore,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.config = config
        self.transport_factory = transport_factory
        self.key_store = key_store
        self.clock = clock

    def emit(self, build: BuildContext) -> bool:
        """Host entry point: True when the message was sent or there was nothing to send."""
        try:
            outcome = self.run(build)
        except Exception:
            logger.exception(
                "Unexpected error while emitting %s #%s", build.project_identity, build.build_number
            )
            return False
        return outcome.ok

    def run(self, build: BuildContext) -> PipelineOutcome:
        """Run every stage once and report the terminal state.

        Args:
            build (BuildContext): Identity and result of the finished build.

        Returns:
            PipelineOutcome: SENT, SKIPPED (no result yet) or FAILED with the
                failing stage and reason.
        """
        config = self.config
        logger.debug("Emitter settings: %s", config.snapshot())

        if build.outcome is None:
            logger.info(
                "%s #%s has no result yet, nothing to publish", build.project_identity, build.build_number
            )
            return PipelineOutcome(
                PipelineState.SKIPPED,
                failure=Failure(ErrorKind.NO_RESULT, "fetch_outcome", "build has not finished"),
                reached=PipelineState.START,
            )
        status = map_status(build.outcome)
        reached = PipelineState.OUTCOME_FETCHED

        message = build_message(
            build.project_identity,
            build.build_number,
            status,
            config.topic_prefix,
            config.environment_shortname,
            clock=self.clock,
        )
        encoded = encode_message(message)
        if not encoded.ok:
            return self._fail(encoded.failure, message, reached)
        reached = PipelineState.MESSAGE_BUILT
        logger.debug("Message: %s", encoded.value[1].decode("utf-8"))

        outgoing: Message | SignedMessage = message
        if config.should_sign:
            signed = sign_message(message, config.certificate_file, config.keystore_file, self.key_store)
            if not signed.ok:
                return self._fail(signed.failure, message, reached)
            outgoing = signed.value
            reached = PipelineState.SIGNED

        opened = connect(self.transport_factory(), config.connection())
        if not opened.ok:
            return self._fail(opened.failure, outgoing, reached)
        with opened.value as connection:
            sent = connection.send(outgoing)
        if not sent.ok:
            return self._fail(sent.failure, outgoing, reached, publish_attempts=connection.attempts)

        logger.info("Published %s for %s #%s", outgoing.topic, build.project_identity, build.build_number)
        return PipelineOutcome(
            PipelineState.SENT,
            message=outgoing,
            publish_attempts=connection.attempts,
            reached=PipelineState.SENT,
        )

    @staticmethod
    def _fail(
        failure: Failure,
        message: Message | SignedMessage | None,
        reached: PipelineState,
        publish_attempts: int = 0,
    ) -> PipelineOutcome:
        logger.error("Unable to send to fedmsg: %s", failure.describe())
        return PipelineOutcome(
            PipelineState.FAILED,
            failure=failure,
            message=message,
            publish_attempts=publish_attempts,
            reached=reached,
        )


def emit(
    build: BuildContext,
    config: PipelineConfig,
    transport_factory: Callable[[], Transport],
    key_store: KeyStore,
) -> bool:
    return Pipeline(config, transport_factory, key_store).emit(build)
