from __future__ import annotations

from enum import Enum


class BuildOutcome(str, Enum):
    """Terminal build results as reported by Jenkins."""
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    ABORTED = "ABORTED"
    NOT_BUILT = "NOT_BUILT"
    UNSTABLE = "UNSTABLE"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: "BuildOutcome | str | None") -> "BuildOutcome":
        """Normalize a result token, degrading anything unrecognized to UNKNOWN."""
        if isinstance(value, BuildOutcome):
            return value
        if value is None:
            return cls.UNKNOWN
        token = str(value).strip().upper().replace("-", "_").replace(" ", "_")
        try:
            return cls(token)
        except ValueError:
            return cls.UNKNOWN


_STATUS_KEYWORDS = {
    BuildOutcome.SUCCESS: "passed",
    BuildOutcome.FAILURE: "failed",
    BuildOutcome.ABORTED: "aborted",
    BuildOutcome.NOT_BUILT: "notbuilt",
    BuildOutcome.UNSTABLE: "unstable",
}


def map_status(outcome: BuildOutcome | str | None) -> str:
    """Return the lowercase status keyword used as the last topic segment."""
    return _STATUS_KEYWORDS.get(BuildOutcome.parse(outcome), "unknown")
