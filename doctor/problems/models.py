"""Data models for authentication problems and their results."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from pydantic import BaseModel

from doctor.config import Settings
from doctor.provider.models import IdentityProvider, ProfileRepository


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class CheckResult(BaseModel):
    has_problem: bool
    details: str | None = None


class FixResult(BaseModel):
    success: bool
    message: str
    details: str | None = None


class ProblemInfo(BaseModel):
    """Serializable descriptor of a problem definition."""

    id: str
    name: str
    description: str
    severity: Severity


@dataclass(frozen=True)
class ProblemContext:
    """Collaborators every problem definition probes and repairs against."""

    provider: IdentityProvider
    profiles: ProfileRepository
    settings: Settings
    timer: Callable[[], float] = field(default=time.perf_counter)


class AuthProblem(ABC):
    """A known failure mode of the auth subsystem: a read-only check plus one remediation."""

    id: str
    name: str
    description: str
    severity: Severity

    def __init__(self, ctx: ProblemContext) -> None:
        self.ctx = ctx

    @property
    def info(self) -> ProblemInfo:
        return ProblemInfo(
            id=self.id,
            name=self.name,
            description=self.description,
            severity=self.severity,
        )

    @abstractmethod
    async def check(self) -> CheckResult:
        """Probe for the problem. Never raises and never mutates state."""

    @abstractmethod
    async def fix(self) -> FixResult:
        """Attempt one remediation. Never raises; not guaranteed idempotent."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r} severity={self.severity.value}>"
