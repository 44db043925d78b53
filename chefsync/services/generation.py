"""Generation client: requests to the AI service and the JSON contract it must honour."""

import asyncio
import base64
import json
import logging
import time
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, TypeVar

from pydantic import ValidationError as PydanticValidationError

from chefsync.config import Settings, get_settings
from chefsync.errors import EmptyInputError, GenerationError, ImageGenerationFailure, ValidationError
from chefsync.models.meal import (
    CityType,
    CookingInput,
    CookingPlan,
    DailySchedule,
    GroceryList,
    MealType,
    RecipeOption,
    ScheduleAudit,
)
from chefsync.services import prompts
from chefsync.analytics import log_error, measure_performance
from chefsync.services.providers import AIProvider, get_provider

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _decode(raw: Optional[str]) -> Any:
    """Parse a JSON response body, tolerating a surrounding markdown fence."""
    if raw is None or not raw.strip():
        raise GenerationError("Empty response from generation service")
    text = raw.strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise GenerationError(f"Malformed JSON from generation service: {e}") from e


def _validate(model: type, data: Any, what: str):
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise GenerationError(f"{what} violates the response contract: {e}") from e


class GenerationClient:
    """Builds requests to the generation service and validates what comes back.

    Every request (call, parse and validation together) is retried
    ``settings.retry_attempts`` times with a fixed delay, each attempt bounded by
    ``settings.request_timeout_seconds``.
    """

    def __init__(self, provider: Optional[AIProvider] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.provider = provider or get_provider(self.settings)

    async def _with_retry(self, label: str, operation: Callable[[], Awaitable[T]]) -> T:
        attempts = self.settings.retry_attempts + 1
        start_time = time.perf_counter()
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            try:
                result = await asyncio.wait_for(
                    operation(), timeout=self.settings.request_timeout_seconds
                )
            except Exception as e:
                last_error = e
                if attempt < attempts:
                    logger.warning(
                        "%s failed (%s), retrying... (%d left)", label, e, attempts - attempt
                    )
                    await asyncio.sleep(self.settings.retry_delay_seconds)
                continue
            measure_performance(label, start_time, outcome="success", attempts=attempt)
            return result

        measure_performance(label, start_time, outcome="failure", attempts=attempts)
        log_error(last_error, label)
        if isinstance(last_error, asyncio.TimeoutError):
            message = f"{label} timed out after {attempts} attempts"
        else:
            message = f"{label} failed after {attempts} attempts: {last_error}"
        raise GenerationError(message) from last_error

    async def _request(
        self,
        label: str,
        prompt: str,
        schema: Dict[str, Any],
        parse: Callable[[Any], T],
    ) -> T:
        async def operation() -> T:
            raw = await self.provider.generate_json(prompt, schema, self.settings.text_model)
            return parse(_decode(raw))

        return await self._with_retry(label, operation)

    async def generate_schedule(self, cooking_input: CookingInput, days: int = 1) -> DailySchedule:
        """Request ``days`` sequential day plans starting at ``cooking_input.target_date``."""
        if days < 1:
            raise ValidationError("A schedule needs at least one day", {"days": "must be >= 1"})

        def parse(data: Any) -> DailySchedule:
            if not isinstance(data, dict) or "days" not in data:
                raise GenerationError("Schedule response is missing 'days'")
            schedule = _validate(DailySchedule, data, "Schedule")
            if not schedule.days:
                raise GenerationError("Schedule response has no days")
            for index, day in enumerate(schedule.days):
                if not day.is_complete:
                    raise GenerationError(f"Day {index + 1} of the schedule is missing a meal")
            return self._repair_dates(schedule, cooking_input.target_date, days)

        return await self._request(
            "generateFullSchedule",
            prompts.get_schedule_prompt(cooking_input, days),
            prompts.SCHEDULE_SCHEMA,
            parse,
        )

    @staticmethod
    def _repair_dates(schedule: DailySchedule, target_date: str, requested: int) -> DailySchedule:
        """Replace non-ISO day labels ("Day 1") with the date at that position."""
        if len(schedule.days) != requested:
            logger.warning(
                "Requested %d days, generation service returned %d", requested, len(schedule.days)
            )
        expected = prompts.schedule_dates(target_date, len(schedule.days))
        repaired = []
        for day, expected_date in zip(schedule.days, expected):
            try:
                date.fromisoformat(day.date)
            except ValueError:
                logger.info("Replacing day label %r with %s", day.date, expected_date)
                day = day.model_copy(update={"date": expected_date})
            repaired.append(day)
        return DailySchedule(days=repaired)

    async def swap_slot(
        self, cooking_input: CookingInput, date_str: str, meal_type: MealType
    ) -> RecipeOption:
        """Request one replacement recipe for a single slot."""

        def parse(data: Any) -> RecipeOption:
            if isinstance(data, list) and len(data) == 1:
                data = data[0]
            return _validate(RecipeOption, data, "Recipe")

        return await self._request(
            "swapMeal",
            prompts.get_swap_prompt(cooking_input, date_str, meal_type),
            prompts.RECIPE_SCHEMA,
            parse,
        )

    async def discover_recipes(self, ingredients: Sequence[str], city_type: CityType) -> List[RecipeOption]:
        """Recipes built around free-form ingredients, for ad-hoc adoption."""
        cleaned = [i.strip() for i in ingredients if i and i.strip()]
        if not cleaned:
            raise EmptyInputError("No ingredients provided")

        def parse(data: Any) -> List[RecipeOption]:
            if not isinstance(data, list):
                raise GenerationError("Discovery response is not a list of recipes")
            options = []
            for entry in data:
                try:
                    options.append(RecipeOption.model_validate(entry))
                except PydanticValidationError as e:
                    logger.warning("Dropping malformed discovered recipe: %s", e)
            if not options:
                raise GenerationError("Discovery response had no valid recipes")
            return options

        return await self._request(
            "discoverRecipesByIngredients",
            prompts.get_discovery_prompt(cleaned, city_type),
            prompts.RECIPE_LIST_SCHEMA,
            parse,
        )

    async def generate_grocery_list(self, plans: Sequence[CookingPlan]) -> GroceryList:
        """Consolidated grocery list for ``plans``, priced for their economy tier."""
        if not plans:
            raise EmptyInputError("No plans provided")
        tiers = {plan.metadata.city_type for plan in plans}
        if len(tiers) > 1:
            names = ", ".join(sorted(t.value for t in tiers))
            raise ValidationError(
                f"Plans span several economy tiers ({names}); build one list per tier",
                {"cityType": "mixed"},
            )
        city_type = plans[0].metadata.city_type
        lines = [f"{p.recipe_name}: {', '.join(p.ingredients_used)}" for p in plans]

        return await self._request(
            "generateGroceryList",
            prompts.get_grocery_prompt(lines, city_type),
            prompts.GROCERY_SCHEMA,
            lambda data: _validate(GroceryList, data, "Grocery list"),
        )

    async def generate_image(self, prompt: str, high_quality: bool = False) -> str:
        """Data URL for a recipe image, or the fallback image URL on any failure."""
        model = self.settings.image_model_hq if high_quality else self.settings.image_model

        async def operation() -> bytes:
            data = await self.provider.generate_image(prompt, model, high_quality)
            if not data:
                raise ImageGenerationFailure("No image part returned")
            return data

        try:
            data = await self._with_retry(f"generateRecipeImage_{model}", operation)
        except GenerationError as e:
            logger.info("Using fallback image: %s", e)
            return self.settings.fallback_image_url
        encoded = base64.b64encode(data).decode("ascii") if isinstance(data, bytes) else data
        return f"data:image/png;base64,{encoded}"

    async def audit_schedule(self, schedule: DailySchedule, cooking_input: CookingInput) -> ScheduleAudit:
        """Independent quality and compliance audit of a generated schedule."""
        return await self._request(
            "auditScheduleQuality",
            prompts.get_audit_prompt(schedule, cooking_input),
            prompts.AUDIT_SCHEMA,
            lambda data: _validate(ScheduleAudit, data, "Audit"),
        )
