"""Guard decorators that turn any exception in a check or fix into a result."""

from __future__ import annotations

import functools
import logging
from typing import Awaitable, Callable, TypeVar

from opentelemetry import trace

from doctor.metrics import fix_attempts_total, problem_checks_total
from doctor.problems.models import AuthProblem, CheckResult, FixResult

logger = logging.getLogger("doctor.problems")
tracer = trace.get_tracer(__name__)

P = TypeVar("P", bound=AuthProblem)


def probe_guard(
    fallback_details: str,
) -> Callable[[Callable[[P], Awaitable[CheckResult]]], Callable[[P], Awaitable[CheckResult]]]:
    """Wrap a check so an exception reports the problem as present."""

    def decorator(check: Callable[[P], Awaitable[CheckResult]]) -> Callable[[P], Awaitable[CheckResult]]:
        @functools.wraps(check)
        async def wrapper(self: P) -> CheckResult:
            with tracer.start_as_current_span(f"check.{self.id}") as span:
                try:
                    result = await check(self)
                    outcome = "detected" if result.has_problem else "ok"
                except Exception:
                    logger.exception("Check '%s' raised", self.id)
                    result = CheckResult(has_problem=True, details=fallback_details)
                    outcome = "error"

                span.set_attribute("auth.problem", self.id)
                span.set_attribute("auth.has_problem", result.has_problem)
                problem_checks_total.labels(problem=self.id, outcome=outcome).inc()
                return result

        return wrapper

    return decorator


def fix_guard(
    fallback_message: str,
    fallback_details: str = "Unknown error",
) -> Callable[[Callable[[P], Awaitable[FixResult]]], Callable[[P], Awaitable[FixResult]]]:
    """Wrap a fix so an exception reports a failed remediation."""

    def decorator(fix: Callable[[P], Awaitable[FixResult]]) -> Callable[[P], Awaitable[FixResult]]:
        @functools.wraps(fix)
        async def wrapper(self: P) -> FixResult:
            with tracer.start_as_current_span(f"fix.{self.id}") as span:
                try:
                    result = await fix(self)
                    outcome = "success" if result.success else "failed"
                except Exception:
                    logger.exception("Fix '%s' raised", self.id)
                    result = FixResult(
                        success=False, message=fallback_message, details=fallback_details
                    )
                    outcome = "error"

                span.set_attribute("auth.problem", self.id)
                span.set_attribute("auth.fix_success", result.success)
                fix_attempts_total.labels(problem=self.id, outcome=outcome).inc()
                if result.success:
                    logger.info("Fix '%s' succeeded: %s", self.id, result.message)
                else:
                    logger.warning("Fix '%s' failed: %s", self.id, result.message)
                return result

        return wrapper

    return decorator
