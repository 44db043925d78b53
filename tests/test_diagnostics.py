"""
Tests for the diagnostics battery.
"""

import json

import pytest

from chefsync.db import MemoryStorage
from chefsync.models.user import Pantry, ReminderPreferences, UserProfile
from chefsync.services.generation import GenerationClient
from chefsync.services.diagnostics import (
    DEEP_CHECK_FAILED,
    DEEP_CHECK_NAME,
    DiagnosticsRunner,
)

from conftest import audit_dict, schedule_dict

STATIC_CHECKS = [
    "User Persistence Logic",
    "Pantry Initialization Integrity",
    "Budget Policy Minimum (₹50)",
    "Cooking Window Temporal Logic",
]


@pytest.fixture
def runner(client):
    return DiagnosticsRunner(client)


def onboarded(**overrides):
    data = {
        "name": "Asha",
        "age": 30,
        "onboarding_complete": True,
        "pantry": Pantry(
            veg=["Onion", "Tomato", "Potato", "Spinach", "Peas", "Okra"],
            non_veg=[],
            oils=["Oil"],
            masalas=["Salt"],
        ),
    }
    data.update(overrides)
    return UserProfile(**data)


def by_name(results):
    return {r.name: r for r in results}


class TestStaticChecks:
    """Checks over stored profile data."""

    async def test_order_and_all_passing(self, runner):
        results = await runner.run([onboarded()], include_ai=False)

        assert [r.name for r in results[:4]] == STATIC_CHECKS
        assert all(r.status == "passed" for r in results[:4])

    @pytest.mark.parametrize("start,end,status", [
        ("18:00", "20:00", "passed"),
        ("20:00", "18:00", "failed"),
        ("19:00", "19:00", "failed"),
        ("7pm", "20:00", "failed"),
    ])
    async def test_cooking_window(self, runner, start, end, status):
        user = onboarded(reminder_preferences=ReminderPreferences(cooking_slot_start=start, cooking_slot_end=end))

        results = by_name(await runner.run([user], include_ai=False))

        assert results["Cooking Window Temporal Logic"].status == status

    async def test_budget_floor(self, runner):
        results = by_name(await runner.run([onboarded(), onboarded(daily_budget=40)], include_ai=False))

        assert results["Budget Policy Minimum (₹50)"].status == "failed"

    async def test_unexpected_pantry_category(self, runner):
        pantry = Pantry.model_validate({"veg": [], "nonVeg": [], "oils": [], "masalas": [], "dairy": ["Milk"]})

        results = by_name(await runner.run([onboarded(pantry=pantry)], include_ai=False))

        assert results["Pantry Initialization Integrity"].status == "failed"

    async def test_missing_stored_pantry_category(self, runner):
        stored = json.dumps([{
            "name": "Asha",
            "pantry": {"veg": ["Onion"], "oils": [], "masalas": []},
        }])
        users = MemoryStorage(stored).load_all()

        results = by_name(await runner.run(users, include_ai=False))

        assert results["Pantry Initialization Integrity"].status == "failed"

    async def test_no_profiles(self, runner):
        results = await runner.run([], include_ai=False)

        assert all(r.status == "passed" for r in results[:4])

    async def test_does_not_write_storage(self, client, profiles, user, storage, provider):
        provider.responses = [schedule_dict(["2024-06-01"]), audit_dict()]
        writes = storage.writes

        await DiagnosticsRunner(client).run(profiles.users)

        assert storage.writes == writes


class TestDeepCheck:
    """AI deep check against the first onboarded profile."""

    async def test_pending_until_onboarded(self, runner, provider):
        user = onboarded(onboarding_complete=False)

        results = await runner.run([user])

        assert results[-1].name == DEEP_CHECK_NAME
        assert results[-1].status == "pending"
        assert provider.calls == []

    async def test_pending_without_client(self, provider):
        results = await DiagnosticsRunner().run([onboarded()])

        assert results[-1].status == "pending"
        assert provider.calls == []

    @pytest.mark.parametrize("score,status", [(70, "failed"), (71, "passed")])
    async def test_score_threshold(self, runner, provider, score, status):
        provider.responses = [schedule_dict(["2024-06-01"]), audit_dict(score=score)]

        results = await runner.run([onboarded()])

        score_row = results[-1]
        assert score_row.name == f"AI Culinary Quality Score: {score}/100"
        assert score_row.status == status
        assert score_row.error.startswith(f"Score: {score}. Report: ")

    async def test_compliance_row(self, runner, provider):
        provider.responses = [schedule_dict(["2024-06-01"]), audit_dict(compliance="NON_COMPLIANT", report="Lunch over budget")]

        results = await runner.run([onboarded()])

        compliance = results[-2]
        assert compliance.name == "AI Compliance Audit: NON_COMPLIANT"
        assert compliance.status == "failed"
        assert compliance.error == "Lunch over budget"

    async def test_uses_first_onboarded_profile(self, runner, provider):
        provider.responses = [schedule_dict(["2024-06-01"]), audit_dict()]
        waiting = onboarded(onboarding_complete=False, pantry=Pantry(veg=["Cabbage"]))

        await runner.run([waiting, onboarded()])

        prompt = provider.calls[0]["prompt"]
        assert "Onion, Tomato, Potato, Spinach, Peas]" in prompt
        assert "Okra" not in prompt

    async def test_service_failure_is_one_failed_row(self, runner, provider):
        provider.responses = [RuntimeError("503")]

        results = await runner.run([onboarded()])

        assert len(results) == 5
        assert results[-1].name == DEEP_CHECK_NAME
        assert results[-1].status == "failed"
        assert results[-1].error == DEEP_CHECK_FAILED

    async def test_bad_timezone_is_one_failed_row(self, provider, settings):
        client = GenerationClient(provider=provider, settings=settings.model_copy(update={"timezone": "Not/AZone"}))

        results = await DiagnosticsRunner(client).run([onboarded()])

        assert results[-1].name == DEEP_CHECK_NAME
        assert results[-1].status == "failed"
        assert provider.calls == []
