from __future__ import annotations

"""fedmsg-emit command-line interface entrypoint."""

import argparse
import json
import os
import sys

import yaml

from emitter.adapters.key_store_fs import FileSystemKeyStore
from emitter.adapters.transport_noop import NoopTransport
from emitter.core.config import ConfigError, PipelineConfig, read_config_file
from emitter.core.logger import configure_logging
from emitter.core.models import BuildContext
from emitter.core.pipeline import Pipeline
from emitter.core.signing import verify_signed
from emitter.core.status import map_status
from emitter.core.version import get_emitter_version


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean from the environment with a safe default."""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes"}


def _parse_bool(value: str | None) -> bool:
    """Parse optional boolean flags that allow an implicit True value."""
    if value is None:
        return True
    return value.lower() in {"1", "true", "yes"}


def _env_int(name: str) -> int | None:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _load_config(args: argparse.Namespace) -> PipelineConfig:
    """Merge the config file with CLI flags and FEDMSG_* environment values.

    Notes:
        Flags win over environment values, which win over the file.
    """
    data: dict = {}
    if args.config:
        data = read_config_file(args.config)
    env_overrides = {
        "endpoint": os.environ.get("FEDMSG_ENDPOINT"),
        "environment_shortname": os.environ.get("FEDMSG_ENVIRONMENT"),
        "should_sign": os.environ.get("FEDMSG_SIGN"),
    }
    flag_overrides = {
        "endpoint": args.endpoint,
        "environment_shortname": args.environment,
        "should_sign": args.sign,
        "certificate_file": args.certificate,
        "keystore_file": args.keystore,
        "linger_ms": args.linger_ms,
        "join_timeout_ms": args.join_timeout_ms,
    }
    for overrides in (env_overrides, flag_overrides):
        data.update({key: value for key, value in overrides.items() if value is not None})
    return PipelineConfig.from_mapping(data)


def _transport_factory(dry_run: bool):
    if dry_run:
        return NoopTransport
    # pyzmq is only needed for real sends.
    from emitter.adapters.transport_zmq import ZmqTransport

    return ZmqTransport


def emit_command(args: argparse.Namespace) -> int:
    """Publish one build result to the bus."""
    configure_logging(args.debug)
    try:
        config = _load_config(args)
    except (OSError, ConfigError, ValueError, yaml.YAMLError) as exc:
        print(str(exc), file=sys.stderr)
        return 2
    if not args.project or args.build is None:
        print("Both --project and --build are required (or JOB_NAME/BUILD_NUMBER)", file=sys.stderr)
        return 2

    build = BuildContext(project_identity=args.project, build_number=args.build, outcome=args.result or None)
    pipeline = Pipeline(config, _transport_factory(args.dry_run), FileSystemKeyStore())
    outcome = pipeline.run(build)
    summary = {
        "state": outcome.state.value,
        "topic": outcome.message.topic if outcome.message else None,
        "reason": outcome.failure.kind.value if outcome.failure else None,
        "dry_run": args.dry_run,
    }
    print(json.dumps(summary, sort_keys=True))
    return 0 if outcome.ok else 1


def verify_command(args: argparse.Namespace) -> int:
    """Verify a signed message document against its certificate."""
    try:
        with open(args.message, "r", encoding="utf-8") as handle:
            wire = json.load(handle)
        certificate_pem = None
        if args.certificate:
            with open(args.certificate, "rb") as handle:
                certificate_pem = handle.read()
    except (OSError, json.JSONDecodeError) as exc:
        print(str(exc), file=sys.stderr)
        return 2
    if not isinstance(wire, dict) or not verify_signed(wire, certificate_pem):
        print("Signature: INVALID")
        return 1
    print(f"Signature: VALID ({wire.get('topic')})")
    return 0


def status_command(args: argparse.Namespace) -> int:
    """Print the status keyword for a build result token."""
    print(map_status(args.result))
    return 0


def main() -> int:
    """CLI entrypoint and command registration."""
    parser = argparse.ArgumentParser(prog="fedmsg-emit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_emitter_version()}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    emit_parser = subparsers.add_parser("emit", help="Publish a finished build to the bus")
    emit_parser.add_argument(
        "--config",
        default=os.environ.get("FEDMSG_CONFIG"),
        help="Path to emitter config (.yaml/.json)",
    )
    emit_parser.add_argument("--project", default=os.environ.get("JOB_NAME"), help="Job name")
    emit_parser.add_argument("--build", type=int, default=_env_int("BUILD_NUMBER"), help="Build number")
    emit_parser.add_argument(
        "--result",
        default=os.environ.get("BUILD_RESULT"),
        help="Build result token (SUCCESS, FAILURE, ...); omit while the build is running",
    )
    emit_parser.add_argument("--endpoint", default=None, help="Bus endpoint, e.g. tcp://host:9941")
    emit_parser.add_argument("--environment", default=None, help="Environment shortname (prod, stg, dev)")
    emit_parser.add_argument(
        "--sign",
        nargs="?",
        const=True,
        default=None,
        type=_parse_bool,
        help="Sign the message (true/false)",
    )
    emit_parser.add_argument("--certificate", default=None, help="Path to the signing certificate")
    emit_parser.add_argument("--keystore", default=None, help="Path to the signing private key")
    emit_parser.add_argument("--linger-ms", type=int, default=None, help="Close linger budget in ms")
    emit_parser.add_argument(
        "--join-timeout-ms",
        type=int,
        default=None,
        help="How long to wait for the relay to subscribe before sending",
    )
    emit_parser.add_argument(
        "--dry-run",
        nargs="?",
        const=True,
        default=_env_bool("DRY_RUN", False),
        type=_parse_bool,
        help="Build and sign but do not publish (true/false)",
    )
    emit_parser.add_argument("--debug", action="store_true", help="Verbose logging")
    emit_parser.set_defaults(func=emit_command)

    verify_parser = subparsers.add_parser("verify", help="Verify a signed message document")
    verify_parser.add_argument("--message", required=True, help="Path to signed message JSON")
    verify_parser.add_argument("--certificate", default=None, help="Verify against this PEM instead")
    verify_parser.set_defaults(func=verify_command)

    status_parser = subparsers.add_parser("status", help="Show the topic status for a result token")
    status_parser.add_argument("result", help="Build result token")
    status_parser.set_defaults(func=status_command)

    args = parser.parse_args()
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
