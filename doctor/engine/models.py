"""Report models returned by the health engine."""

from __future__ import annotations

from pydantic import BaseModel

from doctor.problems.models import ProblemInfo


class DiagnosticEntry(BaseModel):
    problem: ProblemInfo
    has_problem: bool
    details: str | None = None


class DiagnosticSummary(BaseModel):
    total: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


class DiagnosticReport(BaseModel):
    problems: list[DiagnosticEntry] = []
    summary: DiagnosticSummary = DiagnosticSummary()


class FixEntry(BaseModel):
    problem: ProblemInfo
    success: bool
    message: str
    details: str | None = None


class FixSummary(BaseModel):
    total: int = 0
    successful: int = 0
    failed: int = 0


class FixReport(BaseModel):
    applied: list[FixEntry] = []
    summary: FixSummary = FixSummary()


class ActionResult(BaseModel):
    success: bool
    message: str
