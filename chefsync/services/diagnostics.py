"""Diagnostics battery over stored profiles, with an optional AI deep check."""

import logging
from typing import List, Optional, Sequence

from chefsync.config import local_today
from chefsync.db.profiles import reminder_window_errors
from chefsync.models.diagnostics import TestResult
from chefsync.models.meal import CookingInput, EnergyLevel, MealType
from chefsync.models.user import PANTRY_CATEGORIES, UserProfile
from chefsync.analytics import log_error
from chefsync.services.generation import GenerationClient

logger = logging.getLogger(__name__)

MIN_DAILY_BUDGET = 50
PASSING_SCORE = 70
DEEP_CHECK_INGREDIENTS = 5

DEEP_CHECK_NAME = "AI Deep Diagnostic Engine"
DEEP_CHECK_FAILED = "AI service failed to validate logic branch during diagnostic."
DEEP_CHECK_NEEDS_ONBOARDING = "Complete onboarding for first architect to enable AI diagnostics."
DEEP_CHECK_DISABLED = "AI diagnostics disabled or no generation client configured."


def _status(ok: bool) -> str:
    return "passed" if ok else "failed"


class DiagnosticsRunner:
    """Runs the fixed battery of checks. Never writes to storage."""

    def __init__(self, generation: Optional[GenerationClient] = None):
        self.generation = generation

    async def run(self, users: Sequence[UserProfile], include_ai: bool = True) -> List[TestResult]:
        results = [
            TestResult(name="User Persistence Logic", status=_status(users is not None)),
            self.check_pantry(users),
            self.check_budget(users),
            self.check_cooking_window(users),
        ]
        results.extend(await self.deep_check(users, include_ai))
        failed = sum(1 for r in results if r.status == "failed")
        logger.info("Diagnostics finished: %d checks, %d failed", len(results), failed)
        return results

    @staticmethod
    def check_pantry(users: Sequence[UserProfile]) -> TestResult:
        ok = all(sorted(u.pantry.categories()) == sorted(PANTRY_CATEGORIES) for u in users)
        return TestResult(name="Pantry Initialization Integrity", status=_status(ok))

    @staticmethod
    def check_budget(users: Sequence[UserProfile]) -> TestResult:
        ok = all(u.daily_budget >= MIN_DAILY_BUDGET for u in users)
        return TestResult(name="Budget Policy Minimum (₹50)", status=_status(ok))

    @staticmethod
    def check_cooking_window(users: Sequence[UserProfile]) -> TestResult:
        ok = all(
            reminder_window_errors(
                u.reminder_preferences.cooking_slot_start,
                u.reminder_preferences.cooking_slot_end,
            ) is None
            for u in users
        )
        return TestResult(name="Cooking Window Temporal Logic", status=_status(ok))

    async def deep_check(self, users: Sequence[UserProfile], include_ai: bool = True) -> List[TestResult]:
        """Generate a one-day schedule for the first onboarded profile and audit it."""
        if not include_ai or self.generation is None:
            return [TestResult(name=DEEP_CHECK_NAME, status="pending", error=DEEP_CHECK_DISABLED)]

        subject = next((u for u in users if u.onboarding_complete), None)
        if subject is None:
            return [TestResult(name=DEEP_CHECK_NAME, status="pending", error=DEEP_CHECK_NEEDS_ONBOARDING)]

        try:
            cooking_input = CookingInput(
                diet=subject.diet,
                meal_type=MealType.LUNCH,
                energy_level=EnergyLevel.NORMAL,
                time_available=subject.cooking_time_per_meal,
                kitchen_setup=subject.kitchen_setup,
                ingredients=subject.pantry.veg[:DEEP_CHECK_INGREDIENTS],
                target_date=local_today(self.generation.settings).isoformat(),
                city_type=subject.city_type,
                daily_budget=subject.daily_budget,
                allergies=subject.allergies,
            )
            schedule = await self.generation.generate_schedule(cooking_input, 1)
            audit = await self.generation.audit_schedule(schedule, cooking_input)
        except Exception as e:
            log_error(e, "diagnostics.deep_check")
            return [TestResult(name=DEEP_CHECK_NAME, status="failed", error=DEEP_CHECK_FAILED)]

        return [
            TestResult(
                name=f"AI Compliance Audit: {audit.compliance}",
                status=_status(audit.compliance == "COMPLIANT"),
                error=audit.report,
            ),
            TestResult(
                name=f"AI Culinary Quality Score: {audit.score}/100",
                status=_status(audit.score > PASSING_SCORE),
                error=f"Score: {audit.score}. Report: {audit.report}",
            ),
        ]
