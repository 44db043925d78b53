"""Application controller: one installation's selected user, draft and actions."""

import asyncio
import logging
from typing import Any, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from chefsync.db.plans import PlanStore
from chefsync.db.profiles import UserProfileStore
from chefsync.errors import EmptyInputError, GenerationError, ProfileNotFoundError, ValidationError
from chefsync.models.meal import CityType, CookingInput, CookingPlan, MealType, RecipeOption
from chefsync.models.user import UserCreate, UserProfile
from chefsync.analytics import log_error, track_event
from chefsync.services.diagnostics import DiagnosticsRunner
from chefsync.services.generation import GenerationClient
from chefsync.services.reconciler import ScheduleReconciler, adopt_recipe

logger = logging.getLogger(__name__)

MIN_SCHEDULE_INGREDIENTS = 5

SELECT_PROFILE = "Select profile."
SCHEDULE_FAILED = "Compliance failure: The model could not satisfy the current ingredient lock or budget gate."
NO_ROADMAP = "No roadmap generated to audit."
GROCERY_FAILED = "Logistics audit failed."


class ActionResult(BaseModel):
    """Outcome of one user action, with a message fit for display."""

    ok: bool
    message: str
    payload: Any = None


def _fail(message: str) -> ActionResult:
    return ActionResult(ok=False, message=message)


class ChefSession:
    """Routes user actions to the stores and the generation client.

    Every action returns an ActionResult. Generation, empty-input and
    validation failures become messages instead of exceptions.

    Changing the selected user or returning home bumps a sequence token;
    a schedule response that comes back under an older token is dropped.
    """

    def __init__(
        self,
        profiles: UserProfileStore,
        plans: PlanStore,
        generation: GenerationClient,
        diagnostics: Optional[DiagnosticsRunner] = None,
    ):
        self.profiles = profiles
        self.plans = plans
        self.generation = generation
        self.diagnostics = diagnostics or DiagnosticsRunner(generation)
        self.selected_user_id: Optional[str] = None
        self.reconciler: Optional[ScheduleReconciler] = None
        self.discovered: List[Tuple[RecipeOption, str]] = []
        self._token = 0
        self._generating = False

    @property
    def current_user(self) -> Optional[UserProfile]:
        if self.selected_user_id is None:
            return None
        return self.profiles.get(self.selected_user_id)

    @property
    def token(self) -> int:
        return self._token

    def _change_view(self, user_id: Optional[str]) -> None:
        self._token += 1
        self.selected_user_id = user_id
        if self.reconciler is not None:
            self.reconciler.discard()
            self.reconciler = None
        self.discovered = []

    # Users
    def create_user(self, data: Optional[UserCreate] = None) -> ActionResult:
        user = self.profiles.create_user(data)
        self._change_view(user.id)
        return ActionResult(ok=True, message="Profile created. Complete onboarding to continue.", payload=user)

    def select_user(self, user_id: str) -> ActionResult:
        try:
            user = self.profiles.require(user_id)
        except ProfileNotFoundError as e:
            return _fail(str(e))
        self._change_view(user.id)
        return ActionResult(ok=True, message=f"Welcome back, {user.name or 'chef'}.", payload=user)

    def go_home(self) -> ActionResult:
        self._change_view(None)
        return ActionResult(ok=True, message="Returned to Profile Dashboard")

    # Schedules
    async def generate_schedule(self, cooking_input: CookingInput, days: int = 3) -> ActionResult:
        user = self.current_user
        if user is None:
            return _fail(SELECT_PROFILE)
        if len(cooking_input.ingredients) < MIN_SCHEDULE_INGREDIENTS:
            return _fail(
                "Functional Requirement: Please select at least "
                f"{MIN_SCHEDULE_INGREDIENTS} ingredients from your pantry to continue."
            )
        if self._generating:
            return _fail("A schedule is already being generated.")

        token = self._token
        request = cooking_input.model_copy(update={"allergies": user.allergies})
        self._generating = True
        try:
            schedule = await self.generation.generate_schedule(request, days)
        except ValidationError as e:
            return _fail(str(e))
        except GenerationError as e:
            log_error(e, "generate_schedule")
            return _fail(SCHEDULE_FAILED)
        finally:
            self._generating = False

        if token != self._token:
            logger.info("Dropping schedule generated under token %d (now %d)", token, self._token)
            return _fail("Schedule discarded: the active profile changed during generation.")

        if self.reconciler is not None:
            self.reconciler.discard()
        self.reconciler = ScheduleReconciler(user.id, schedule, self.profiles, self.plans, self.generation)
        return ActionResult(ok=True, message="Compliance validation successful.", payload=schedule)

    async def swap(self, date_str: str, meal_type: MealType) -> ActionResult:
        if self.reconciler is None or not self.reconciler.is_open:
            return _fail("No draft schedule to edit.")
        if self.reconciler.is_busy(date_str, meal_type):
            return _fail(f"{meal_type.value.title()} on {date_str} is already being swapped.")
        try:
            recipe = await self.reconciler.swap(date_str, meal_type)
        except ValidationError as e:
            return _fail(str(e))
        except GenerationError as e:
            log_error(e, "swap")
            return _fail("Swap failed. The original meal is unchanged.")
        return ActionResult(ok=True, message=f"Swapped in {recipe.recipe_name}.", payload=recipe)

    def adopt_meal(
        self,
        recipe: RecipeOption,
        date_str: str,
        meal_type: MealType,
        image_url: Optional[str] = None,
    ) -> ActionResult:
        user = self.current_user
        if user is None:
            return _fail(SELECT_PROFILE)
        if self.reconciler is not None and self.reconciler.is_open:
            plan = self.reconciler.adopt_single(recipe, date_str, meal_type, image_url=image_url)
        else:
            plan = self.plans.add_plan(
                user.id,
                adopt_recipe(
                    recipe, user, date_str, meal_type,
                    self.generation.settings.fallback_image_url,
                    image_url=image_url,
                ),
            )
        return ActionResult(ok=True, message=f"Recipe locked: {recipe.recipe_name}", payload=plan)

    def commit_schedule(self) -> ActionResult:
        if self.reconciler is None or not self.reconciler.is_open:
            return _fail("No draft schedule to commit.")
        committed = self.reconciler.commit_all()
        self.reconciler = None
        return ActionResult(ok=True, message="Full schedule committed to your roadmap.", payload=committed)

    def discard_schedule(self) -> ActionResult:
        if self.reconciler is not None:
            self.reconciler.discard()
            self.reconciler = None
        return ActionResult(ok=True, message="Draft schedule discarded.")

    # Groceries
    def _grocery_source(self, user: UserProfile) -> List[CookingPlan]:
        """Draft slots when a draft is open, otherwise the adopted plans, priced at the user's tier."""
        if self.reconciler is not None and self.reconciler.is_open:
            fallback = self.generation.settings.fallback_image_url
            return [
                adopt_recipe(recipe, user, day.date, meal_type, fallback)
                for day in self.reconciler.schedule.days
                for meal_type, recipe in day.meals()
                if recipe is not None
            ]
        return [
            plan.model_copy(update={"metadata": plan.metadata.model_copy(update={"city_type": user.city_type})})
            for plan in user.plans
        ]

    async def generate_grocery_list(self) -> ActionResult:
        user = self.current_user
        if user is None:
            return _fail(SELECT_PROFILE)
        source = self._grocery_source(user)
        if not source:
            return _fail(NO_ROADMAP)
        try:
            grocery = await self.generation.generate_grocery_list(source)
        except EmptyInputError:
            return _fail(NO_ROADMAP)
        except (GenerationError, ValidationError) as e:
            log_error(e, "generate_grocery_list")
            return _fail(GROCERY_FAILED)
        return ActionResult(ok=True, message=f"Grocery list ready: {len(grocery.items)} items.", payload=grocery)

    # Discovery
    async def discover(self, ingredients: Sequence[str], city_type: Optional[CityType] = None) -> ActionResult:
        user = self.current_user
        if user is None:
            return _fail(SELECT_PROFILE)
        try:
            options = await self.generation.discover_recipes(ingredients, city_type or user.city_type)
        except EmptyInputError:
            return _fail("Add at least one ingredient to discover recipes.")
        except GenerationError as e:
            log_error(e, "discover")
            return _fail("Recipe discovery failed.")

        high_quality = user.preferences.high_quality_visuals
        images = await asyncio.gather(
            *(self.generation.generate_image(option.image_prompt, high_quality) for option in options)
        )
        self.discovered = list(zip(options, images))
        track_event("recipes_discovered", userId=user.id, count=len(options))
        return ActionResult(ok=True, message=f"Found {len(options)} recipes.", payload=self.discovered)

    def adopt_discovered(self, index: int, date_str: str, meal_type: MealType) -> ActionResult:
        if not 0 <= index < len(self.discovered):
            return _fail("No discovered recipe at that position.")
        recipe, image_url = self.discovered[index]
        return self.adopt_meal(recipe, date_str, meal_type, image_url=image_url)

    # Diagnostics
    async def run_diagnostics(self, include_ai: bool = True) -> ActionResult:
        results = await self.diagnostics.run(self.profiles.users, include_ai=include_ai)
        passed = sum(1 for r in results if r.status == "passed")
        return ActionResult(ok=True, message=f"Quality Scan Complete: {passed} units verified.", payload=results)
