"""Outcome of a single setup step."""
from __future__ import annotations
import enum
from dataclasses import dataclass, field
from typing import Any, Optional


class StepOutcome(str, enum.Enum):
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    SKIPPED = "skipped"
    FAILED = "failed"


class FailureKind(str, enum.Enum):
    """Why a step failed.

    TRANSPORT: no HTTP response (connection refused, timeout, TLS)
    HTTP: Keycloak answered with an error status
    MALFORMED: Keycloak answered 2xx but the body was unusable
    """
    TRANSPORT = "transport"
    HTTP = "http"
    MALFORMED = "malformed"


@dataclass
class StepResult:
    step: str
    outcome: StepOutcome
    detail: str = ""
    failure_kind: Optional[FailureKind] = None
    status_code: Optional[int] = None
    value: Any = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        return self.outcome is not StepOutcome.FAILED

    @classmethod
    def created(cls, step: str, detail: str = "", status_code: Optional[int] = None, value: Any = None) -> "StepResult":
        return cls(step, StepOutcome.CREATED, detail, status_code=status_code, value=value)

    @classmethod
    def already_exists(cls, step: str, detail: str = "") -> "StepResult":
        return cls(step, StepOutcome.ALREADY_EXISTS, detail, status_code=409)

    @classmethod
    def skipped(cls, step: str, detail: str = "") -> "StepResult":
        return cls(step, StepOutcome.SKIPPED, detail)

    @classmethod
    def failed(cls, step: str, kind: FailureKind, detail: str, status_code: Optional[int] = None) -> "StepResult":
        return cls(step, StepOutcome.FAILED, detail, failure_kind=kind, status_code=status_code)


@dataclass
class SetupReport:
    """Ordered results of one setup run."""
    results: list[StepResult] = field(default_factory=list)

    def add(self, result: StepResult) -> None:
        self.results.append(result)

    @property
    def succeeded(self) -> bool:
        return all(result.ok for result in self.results)

    @property
    def failed_step(self) -> Optional[StepResult]:
        return next((result for result in self.results if not result.ok), None)

    def get(self, step: str) -> Optional[StepResult]:
        return next((result for result in self.results if result.step == step), None)

    @property
    def steps(self) -> list[str]:
        return [result.step for result in self.results]
