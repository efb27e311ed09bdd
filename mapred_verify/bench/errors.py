from __future__ import annotations


class VerifyError(Exception):
    """Base class for every error raised by the verification harness."""


class SetupError(VerifyError):
    # bad flags, missing source tree, store not reachable
    pass


class FixtureError(VerifyError):
    def __init__(self, op: str, key: str, cause: object) -> None:
        super().__init__(f"{op} failed for key {key!r}: {cause}")
        self.op = op
        self.key = key
        self.cause = cause


class DefinitionLoadError(VerifyError):
    pass


class ScenarioExecutionError(VerifyError):
    """
    Transport, timeout or unexpected-shape response from the store.
    Never caught by the runner: it aborts the whole run.
    """


class VerificationFailure(VerifyError):
    def __init__(self, label: str, subcase: str, reason: str | None = None) -> None:
        super().__init__(f"{label}: {subcase} failed" + (f" ({reason})" if reason else ""))
        self.label = label
        self.subcase = subcase
        self.reason = reason
