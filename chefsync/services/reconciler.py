"""Draft schedule review: per-slot swaps, single adoption and batch commit."""

import logging
from collections import Counter
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from chefsync.db.plans import PlanStore
from chefsync.db.profiles import UserProfileStore
from chefsync.errors import ValidationError
from chefsync.models.meal import (
    CookingInput,
    CookingPlan,
    DailySchedule,
    EnergyLevel,
    MealType,
    OptimizationGoal,
    PlanMetadata,
    RecipeOption,
)
from chefsync.models.user import UserProfile
from chefsync.services.generation import GenerationClient

logger = logging.getLogger(__name__)

Slot = Tuple[str, MealType]

SWAP_INGREDIENT_LIMIT = 10


def adopt_recipe(
    recipe: RecipeOption,
    user: UserProfile,
    date_str: str,
    meal_type: MealType,
    fallback_image_url: str,
    image_url: Optional[str] = None,
    energy_level: EnergyLevel = EnergyLevel.NORMAL,
    optimization_goal: OptimizationGoal = OptimizationGoal.TASTE,
) -> CookingPlan:
    """Promote a recipe into a new CookingPlan with a fresh id."""
    data = recipe.model_dump(exclude={"id", "image_url", "metadata"})
    return CookingPlan(
        **data,
        id=uuid4().hex,
        image_url=image_url or fallback_image_url,
        metadata=PlanMetadata(
            meal_type=meal_type,
            date=date_str,
            energy_level=energy_level,
            diet=user.diet,
            city_type=user.city_type,
            optimization_goal=optimization_goal,
        ),
    )


class ScheduleReconciler:
    """Holds one generated schedule as an editable draft for one user.

    Nothing reaches the plan store until ``adopt_single`` or ``commit_all``.
    Each slot carries a version number; a swap response is applied only if
    the slot has not changed since that swap was requested.
    """

    def __init__(
        self,
        user_id: str,
        schedule: DailySchedule,
        profiles: UserProfileStore,
        plans: PlanStore,
        generation: GenerationClient,
    ):
        self.user_id = user_id
        self.profiles = profiles
        self.plans = plans
        self.generation = generation
        self._schedule: Optional[DailySchedule] = schedule
        self._versions: Dict[Slot, int] = {}
        self._busy: Counter = Counter()

    @property
    def schedule(self) -> Optional[DailySchedule]:
        return self._schedule

    @property
    def is_open(self) -> bool:
        return self._schedule is not None

    def is_busy(self, date_str: str, meal_type: MealType) -> bool:
        return self._busy[(date_str, meal_type)] > 0

    def _require_open(self) -> DailySchedule:
        if self._schedule is None:
            raise ValidationError("This draft schedule was already committed or discarded")
        return self._schedule

    def _require_day(self, date_str: str) -> None:
        if self._require_open().day(date_str) is None:
            raise ValidationError(f"No day {date_str} in this draft", {"date": date_str})

    def swap_input(self, date_str: str, meal_type: MealType) -> CookingInput:
        """Constraints for a single-slot swap, taken from the owner's profile."""
        user = self.profiles.require(self.user_id)
        return CookingInput(
            diet=user.diet,
            meal_type=meal_type,
            energy_level=EnergyLevel.NORMAL,
            time_available=user.cooking_time_per_meal,
            kitchen_setup=user.kitchen_setup,
            ingredients=user.pantry.all_items()[:SWAP_INGREDIENT_LIMIT],
            target_date=date_str,
            city_type=user.city_type,
            daily_budget=user.daily_budget,
            allergies=user.allergies,
        )

    async def swap(self, date_str: str, meal_type: MealType) -> RecipeOption:
        """Replace one slot with a freshly generated recipe.

        On GenerationError the draft is left untouched and the error propagates.
        """
        self._require_day(date_str)
        slot = (date_str, meal_type)
        requested_version = self._versions.get(slot, 0)
        cooking_input = self.swap_input(date_str, meal_type)

        self._busy[slot] += 1
        try:
            recipe = await self.generation.swap_slot(cooking_input, date_str, meal_type)
        finally:
            self._busy[slot] -= 1

        if self._schedule is None:
            logger.info("Draft closed while swapping %s %s; response dropped", date_str, meal_type.value)
            return recipe
        if self._versions.get(slot, 0) != requested_version:
            logger.info(
                "Slot %s %s changed during swap; discarding %r",
                date_str, meal_type.value, recipe.recipe_name,
            )
            return self._schedule.day(date_str).get(meal_type)

        days = [
            day.with_meal(meal_type, recipe) if day.date == date_str else day
            for day in self._schedule.days
        ]
        self._schedule = DailySchedule(days=days)
        self._versions[slot] = requested_version + 1
        return recipe

    def adopt_single(
        self,
        recipe: RecipeOption,
        date_str: str,
        meal_type: MealType,
        image_url: Optional[str] = None,
        energy_level: EnergyLevel = EnergyLevel.NORMAL,
        optimization_goal: OptimizationGoal = OptimizationGoal.TASTE,
    ) -> CookingPlan:
        """Adopt one recipe into the plan store, replacing its slot."""
        plan = adopt_recipe(
            recipe,
            self.profiles.require(self.user_id),
            date_str,
            meal_type,
            self.generation.settings.fallback_image_url,
            image_url=image_url,
            energy_level=energy_level,
            optimization_goal=optimization_goal,
        )
        return self.plans.add_plan(self.user_id, plan)

    def commit_all(self) -> List[CookingPlan]:
        """Adopt every filled slot in one batch, then close the draft."""
        schedule = self._require_open()
        user = self.profiles.require(self.user_id)
        fallback_image = self.generation.settings.fallback_image_url
        plans = [
            adopt_recipe(recipe, user, day.date, meal_type, fallback_image)
            for day in schedule.days
            for meal_type, recipe in day.meals()
            if recipe is not None
        ]
        committed = self.plans.add_batch_plans(self.user_id, plans)
        self.discard()
        return committed

    def discard(self) -> None:
        self._schedule = None
        self._versions.clear()
