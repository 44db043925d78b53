"""Recipe, plan, schedule and grocery models."""

from datetime import date
from enum import Enum
from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Dict, Iterator, List, Literal, Optional, Tuple


class CamelModel(BaseModel):
    """Base model serialized with the camelCase keys used on the wire and on disk."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class DietType(str, Enum):
    VEG = "VEG"
    NON_VEG = "NON_VEG"


class KitchenSetup(str, Enum):
    BASIC = "BASIC"
    MEDIUM = "MEDIUM"
    FULL = "FULL"


class MealType(str, Enum):
    BREAKFAST = "BREAKFAST"
    LUNCH = "LUNCH"
    DINNER = "DINNER"

    @property
    def slot_key(self) -> str:
        """Attribute name of this meal on a DayPlan."""
        return self.value.lower()


class EnergyLevel(str, Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"


class CityType(str, Enum):
    METRO = "METRO"
    TIER_2 = "TIER_2"
    TIER_3 = "TIER_3"


class OptimizationGoal(str, Enum):
    TASTE = "TASTE"
    PROTEIN = "PROTEIN"
    CHEAPEST = "CHEAPEST"
    FASTEST = "FASTEST"


BUDGET_VALIDATED = "Budget Validated"
BUDGET_RISK = "Budget Risk"
MAX_FALLBACKS = 2


class Substitution(CamelModel):
    """Ingredient swap suggested by the generator."""

    original: str
    replacement: str
    reason: str = ""


class CookingStep(CamelModel):
    """One step of the cooking sequence."""

    instruction: str
    time_estimate: Optional[str] = None


class FallbackOption(CamelModel):
    """Cheaper alternative offered for a budget-risky recipe."""

    recipe_name: str
    description: str = ""
    estimated_cost_value: Optional[float] = None


class RecipeOption(CamelModel):
    """A generated recipe that has not been adopted yet."""

    recipe_name: str
    description: str
    total_time: str
    ingredients_used: List[str]
    substitutions: List[Substitution] = []
    prep_checklist: List[str]
    cooking_sequence: List[CookingStep]
    additional_notes: str = ""
    budget_feasibility: Literal["Budget Validated", "Budget Risk"]
    estimated_cost_value: float = Field(ge=0)
    is_fallback: Optional[bool] = None
    fallbacks: List[FallbackOption] = []
    image_prompt: str

    @field_validator("budget_feasibility", mode="before")
    @classmethod
    def normalize_feasibility(cls, value):
        """Map loose labels such as "validated" or "RISK" onto the two known tags."""
        if isinstance(value, str):
            lowered = value.lower()
            if "risk" in lowered:
                return BUDGET_RISK
            if "valid" in lowered:
                return BUDGET_VALIDATED
        return value

    @field_validator("fallbacks", mode="before")
    @classmethod
    def cap_fallbacks(cls, value):
        if value is None:
            return []
        if isinstance(value, list):
            return value[:MAX_FALLBACKS]
        return value

    @field_validator("substitutions", mode="before")
    @classmethod
    def default_substitutions(cls, value):
        return [] if value is None else value

    @property
    def is_budget_risk(self) -> bool:
        return self.budget_feasibility == BUDGET_RISK


class PlanMetadata(CamelModel):
    """Slot and context a plan was adopted for."""

    meal_type: MealType
    date: str
    energy_level: EnergyLevel = EnergyLevel.NORMAL
    diet: DietType
    city_type: CityType
    optimization_goal: OptimizationGoal = OptimizationGoal.TASTE


class CookingPlan(RecipeOption):
    """An adopted recipe, durable in the user's plan collection."""

    id: str
    image_url: str
    metadata: PlanMetadata

    @property
    def slot(self) -> Tuple[str, MealType]:
        """(date, meal type) key; unique within one user's plans."""
        return (self.metadata.date, self.metadata.meal_type)


class DayPlan(CamelModel):
    """Three meals for one date. Slots may be empty while a draft is edited."""

    date: str
    breakfast: Optional[RecipeOption] = None
    lunch: Optional[RecipeOption] = None
    dinner: Optional[RecipeOption] = None

    def get(self, meal_type: MealType) -> Optional[RecipeOption]:
        return getattr(self, meal_type.slot_key)

    def with_meal(self, meal_type: MealType, recipe: Optional[RecipeOption]) -> "DayPlan":
        """Copy of this day with one slot replaced."""
        return self.model_copy(update={meal_type.slot_key: recipe})

    def meals(self) -> Iterator[Tuple[MealType, Optional[RecipeOption]]]:
        for meal_type in MealType:
            yield meal_type, self.get(meal_type)

    @property
    def is_complete(self) -> bool:
        return all(recipe is not None for _, recipe in self.meals())


class DailySchedule(CamelModel):
    """Multi-day draft produced by the generator."""

    days: List[DayPlan]

    def day(self, date: str) -> Optional[DayPlan]:
        for day in self.days:
            if day.date == date:
                return day
        return None

    def recipes(self) -> List[RecipeOption]:
        """All filled slots, day by day in breakfast/lunch/dinner order."""
        return [
            recipe
            for day in self.days
            for _, recipe in day.meals()
            if recipe is not None
        ]


class GroceryItem(CamelModel):
    """Item for the consolidated grocery list."""

    item: str
    quantity: str
    estimated_cost: str
    category: str

    class Config:
        coerce_numbers_to_str = True


class GroceryList(CamelModel):
    """Consolidated shopping list derived from a set of recipes."""

    items: List[GroceryItem]
    total_estimated_budget: str
    budget_feasibility_note: Optional[str] = None

    class Config:
        coerce_numbers_to_str = True

    def by_category(self) -> Dict[str, List[GroceryItem]]:
        """Items grouped by category, in first-seen category order."""
        grouped: Dict[str, List[GroceryItem]] = {}
        for item in self.items:
            grouped.setdefault(item.category or "Other", []).append(item)
        return grouped


class ScheduleAudit(CamelModel):
    """Independent quality and compliance check of a schedule."""

    score: int
    report: str
    compliance: Literal["COMPLIANT", "NON_COMPLIANT"]

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return max(0, min(100, round(value)))
        return value

    @field_validator("compliance", mode="before")
    @classmethod
    def normalize_compliance(cls, value):
        if isinstance(value, str):
            return value.strip().upper().replace("-", "_").replace(" ", "_")
        return value


class CookingInput(CamelModel):
    """Constraints for one generation request."""

    diet: DietType
    meal_type: MealType = MealType.LUNCH
    energy_level: EnergyLevel = EnergyLevel.NORMAL
    time_available: int = 30
    kitchen_setup: KitchenSetup = KitchenSetup.MEDIUM
    ingredients: List[str]
    target_date: str
    city_type: CityType
    daily_budget: int
    optimization_goal: Optional[OptimizationGoal] = None
    allergies: Optional[str] = None

    @field_validator("target_date")
    @classmethod
    def check_iso_date(cls, value: str) -> str:
        date.fromisoformat(value)
        return value

    @property
    def meal_budget(self) -> float:
        """One third of the daily budget, the per-meal cost ceiling."""
        return round(self.daily_budget / 3, 2)
