"""Auth health engine — diagnose every known problem, then fix what was found."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Iterable, Sequence

from opentelemetry import trace

from doctor.config import Settings
from doctor.engine import session as session_helpers
from doctor.engine.models import (
    ActionResult,
    DiagnosticEntry,
    DiagnosticReport,
    DiagnosticSummary,
    FixEntry,
    FixReport,
    FixSummary,
)
from doctor.metrics import diagnose_duration
from doctor.problems.models import AuthProblem, Severity
from doctor.provider.models import IdentityProvider
from doctor.provider.storage import KeyValueStorage

logger = logging.getLogger("doctor.engine")
tracer = trace.get_tracer(__name__)


def summarize_diagnostics(entries: Sequence[DiagnosticEntry]) -> DiagnosticSummary:
    detected = [e for e in entries if e.has_problem]
    return DiagnosticSummary(
        total=len(detected),
        critical=sum(1 for e in detected if e.problem.severity == Severity.CRITICAL),
        high=sum(1 for e in detected if e.problem.severity == Severity.HIGH),
        medium=sum(1 for e in detected if e.problem.severity == Severity.MEDIUM),
        low=sum(1 for e in detected if e.problem.severity == Severity.LOW),
    )


def summarize_fixes(entries: Sequence[FixEntry]) -> FixSummary:
    successful = sum(1 for e in entries if e.success)
    return FixSummary(total=len(entries), successful=successful, failed=len(entries) - successful)


class AuthHealthEngine:
    """Runs the problem registry against the identity provider.

    Severity is reported only; it does not order or gate fixes.
    """

    def __init__(
        self,
        problems: Iterable[AuthProblem],
        provider: IdentityProvider,
        storages: Iterable[KeyValueStorage],
        settings: Settings,
    ) -> None:
        self._problems = tuple(problems)
        self._provider = provider
        self._storages = tuple(storages)
        self._settings = settings

        ids = [p.id for p in self._problems]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate problem ids in registry: {ids}")

    @property
    def problems(self) -> tuple[AuthProblem, ...]:
        return self._problems

    async def diagnose(self) -> DiagnosticReport:
        """Run every check concurrently; entries keep registry order."""
        started = time.perf_counter()
        with tracer.start_as_current_span("diagnose") as span:
            results = await asyncio.gather(*(p.check() for p in self._problems))

            entries = [
                DiagnosticEntry(problem=p.info, has_problem=r.has_problem, details=r.details)
                for p, r in zip(self._problems, results)
            ]
            summary = summarize_diagnostics(entries)
            span.set_attribute("auth.problems_detected", summary.total)

        diagnose_duration.observe(time.perf_counter() - started)
        logger.info(
            "Diagnosis complete: %d problems (critical=%d high=%d medium=%d low=%d)",
            summary.total, summary.critical, summary.high, summary.medium, summary.low,
        )
        return DiagnosticReport(problems=entries, summary=summary)

    async def apply_fixes(self) -> FixReport:
        """Re-diagnose, then attempt each detected problem's fix once."""
        report = await self.diagnose()
        by_id = {p.id: p for p in self._problems}
        to_fix = [by_id[e.problem.id] for e in report.problems if e.has_problem]

        with tracer.start_as_current_span("apply_fixes") as span:
            results = await asyncio.gather(*(p.fix() for p in to_fix))

            applied = [
                FixEntry(problem=p.info, success=r.success, message=r.message, details=r.details)
                for p, r in zip(to_fix, results)
            ]
            summary = summarize_fixes(applied)
            span.set_attribute("auth.fixes_attempted", summary.total)
            span.set_attribute("auth.fixes_successful", summary.successful)

        logger.info(
            "Fixes applied: %d attempted, %d successful, %d failed",
            summary.total, summary.successful, summary.failed,
        )
        return FixReport(applied=applied, summary=summary)

    async def needs_reauthentication(self) -> bool:
        return await session_helpers.needs_reauthentication(
            self._provider, self._settings.reauth_window_seconds
        )

    async def force_session_refresh(self) -> ActionResult:
        return await session_helpers.force_session_refresh(self._provider)

    async def clear_auth_data(self) -> ActionResult:
        return await session_helpers.clear_auth_data(
            self._provider, self._storages, self._settings.credential_key_markers
        )
