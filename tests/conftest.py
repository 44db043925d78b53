"""
Pytest configuration and shared fixtures.

The generation service is replaced by FakeProvider, which replays scripted
responses and records every call, so no test touches the network.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional, Sequence

import pytest

from chefsync.config import Settings
from chefsync.db import MemoryStorage, PlanStore, UserProfileStore
from chefsync.models.meal import (
    CityType,
    CookingPlan,
    DietType,
    MealType,
    PlanMetadata,
    RecipeOption,
)
from chefsync.models.user import UserCreate
from chefsync.services.generation import GenerationClient
from chefsync.services.providers import AIProvider


class FakeProvider(AIProvider):
    """Replays queued responses in order; the last one repeats once the queue runs dry.

    A queued Exception is raised instead of returned. A queued asyncio.Event is
    awaited before the caller takes the next item, so gated callers receive
    responses in the order their events are set.
    """

    def __init__(self, responses: Sequence[Any] = (), images: Sequence[Any] = (b"\x89PNG",)):
        self.responses = list(responses)
        self.images = list(images)
        self.calls: List[Dict[str, Any]] = []
        self.image_calls: List[Dict[str, Any]] = []
        self.delay = 0.0

    @staticmethod
    def _next(queue: List[Any]) -> Any:
        if not queue:
            raise RuntimeError("FakeProvider has nothing scripted")
        return queue.pop(0) if len(queue) > 1 else queue[0]

    async def generate_json(self, prompt: str, schema: Dict[str, Any], model: str) -> str:
        self.calls.append({"prompt": prompt, "schema": schema, "model": model})
        if self.delay:
            await asyncio.sleep(self.delay)
        item = self._next(self.responses)
        while isinstance(item, asyncio.Event):
            await item.wait()
            item = self._next(self.responses)
        if isinstance(item, BaseException):
            raise item
        return item if isinstance(item, str) else json.dumps(item)

    async def generate_image(self, prompt: str, model: str, high_quality: bool) -> Optional[bytes]:
        self.image_calls.append({"prompt": prompt, "model": model, "high_quality": high_quality})
        item = self._next(self.images)
        if isinstance(item, BaseException):
            raise item
        return item


def recipe_dict(name: str = "Dal Tadka", cost: float = 60, feasibility: str = "Budget Validated") -> Dict[str, Any]:
    """A recipe as the generation service returns it (camelCase keys)."""
    return {
        "recipeName": name,
        "description": f"Home-style {name}",
        "totalTime": "30 mins",
        "ingredientsUsed": ["Onion", "Tomato", "Toor Dal"],
        "substitutions": [{"original": "Ghee", "replacement": "Oil", "reason": "Pantry"}],
        "prepChecklist": ["Rinse dal", "Chop onion"],
        "cookingSequence": [{"instruction": "Pressure cook dal", "timeEstimate": "15 mins"}],
        "additionalNotes": "",
        "budgetFeasibility": feasibility,
        "estimatedCostValue": cost,
        "imagePrompt": f"A bowl of {name}",
    }


def day_dict(date_str: str, names: Sequence[str] = ("Poha", "Dal Tadka", "Roti Sabzi")) -> Dict[str, Any]:
    breakfast, lunch, dinner = names
    return {
        "date": date_str,
        "breakfast": recipe_dict(breakfast),
        "lunch": recipe_dict(lunch),
        "dinner": recipe_dict(dinner),
    }


def schedule_dict(dates: Sequence[str]) -> Dict[str, Any]:
    return {"days": [day_dict(d) for d in dates]}


def audit_dict(score: int = 85, compliance: str = "COMPLIANT", report: str = "Balanced and within budget") -> Dict[str, Any]:
    return {"score": score, "report": report, "compliance": compliance}


@pytest.fixture
def settings():
    """Settings with no retry delay and no .env lookup."""
    return Settings(
        _env_file=None,
        gemini_api_key="test-key",
        retry_delay_seconds=0,
        request_timeout_seconds=5,
        storage_backend="memory",
    )


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def client(provider, settings):
    return GenerationClient(provider=provider, settings=settings)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def profiles(storage):
    return UserProfileStore(storage)


@pytest.fixture
def plan_store(profiles):
    return PlanStore(profiles)


@pytest.fixture
def user(profiles):
    """An onboarded metro user with the default pantry."""
    created = profiles.create_user(UserCreate(name="Asha", age=30, city_type=CityType.METRO, daily_budget=300))
    return profiles.complete_onboarding(created.id)


@pytest.fixture
def make_recipe():
    def factory(name: str = "Dal Tadka", cost: float = 60) -> RecipeOption:
        return RecipeOption.model_validate(recipe_dict(name, cost))
    return factory


@pytest.fixture
def make_plan(make_recipe):
    """Build a CookingPlan for a slot without going through adoption."""
    counter = {"n": 0}

    def factory(
        name: str = "Dal Tadka",
        date_str: str = "2024-06-01",
        meal_type: MealType = MealType.LUNCH,
        city_type: CityType = CityType.METRO,
    ) -> CookingPlan:
        counter["n"] += 1
        return CookingPlan(
            **make_recipe(name).model_dump(),
            id=f"plan-{counter['n']}",
            image_url="https://example.com/food.png",
            metadata=PlanMetadata(
                meal_type=meal_type,
                date=date_str,
                diet=DietType.VEG,
                city_type=city_type,
            ),
        )
    return factory
