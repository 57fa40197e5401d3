from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version


def get_emitter_version() -> str:
    try:
        return version("jenkins-fedmsg-emitter")
    except PackageNotFoundError:
        return "dev"
