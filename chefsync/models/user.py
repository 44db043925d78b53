"""User profile models."""

from datetime import datetime, time
from enum import Enum
from pydantic import Field
from typing import List, Literal, Optional
from uuid import uuid4

from chefsync.models.meal import CamelModel, CityType, CookingPlan, DietType, KitchenSetup


PANTRY_CATEGORIES = ("veg", "non_veg", "oils", "masalas")


def parse_clock(value: Optional[str]) -> Optional[time]:
    """Parse an "HH:MM" wall-clock time; None when missing or malformed."""
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except ValueError:
        return None


class Persona(str, Enum):
    WORKING_PROFESSIONAL = "WORKING_PROFESSIONAL"
    STUDENT = "STUDENT"
    HOUSEHOLD = "HOUSEHOLD"


class ReminderPreferences(CamelModel):
    """When the user wants to be reminded and cook."""

    reminder_time: Literal["morning", "evening"] = "evening"
    cooking_slot_start: str = "18:00"
    cooking_slot_end: str = "20:00"
    reminders_per_day: Literal[1, 2] = 1


class UserPreferences(CamelModel):
    """Presentation preferences."""

    high_quality_visuals: bool = False


class Pantry(CamelModel):
    """Ingredients on hand, in four categories."""

    veg: List[str] = []
    non_veg: List[str] = []
    oils: List[str] = []
    masalas: List[str] = []

    class Config:
        extra = "allow"

    def categories(self) -> List[str]:
        """Category names actually present in the data, including unexpected ones.

        Categories filled in by defaults do not count.
        """
        declared = [name for name in PANTRY_CATEGORIES if name in self.model_fields_set]
        return declared + list(self.model_extra or {})

    def all_items(self) -> List[str]:
        return [item for category in PANTRY_CATEGORIES for item in getattr(self, category)]


def default_pantry() -> Pantry:
    return Pantry(
        veg=["Onion", "Garlic", "Potato", "Tomato"],
        non_veg=["Egg"],
        oils=["Oil", "Butter"],
        masalas=["Salt", "Turmeric", "Chilli"],
    )


class UserProfile(CamelModel):
    """Full persisted profile, with the user's pantry and adopted plans.

    Budget and reminder-window invariants are enforced on input
    (UserCreate / UserUpdate), not here, so stored data that violates them
    still loads and can be reported by diagnostics.
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    name: str = ""
    age: int = 25
    city_type: CityType = CityType.TIER_2
    daily_budget: int = 200
    diet: DietType = DietType.VEG
    kitchen_setup: KitchenSetup = KitchenSetup.MEDIUM
    pantry: Pantry = Field(default_factory=default_pantry)
    plans: List[CookingPlan] = []
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    persona: Optional[Persona] = None
    onboarding_complete: bool = False
    reminder_preferences: ReminderPreferences = Field(default_factory=ReminderPreferences)
    allergies: Optional[str] = None
    cooking_time_per_meal: int = 30


class UserCreate(CamelModel):
    """Data required to create a new user."""

    name: str = ""
    age: int = Field(25, ge=1, le=120)
    city_type: CityType = CityType.TIER_2
    daily_budget: int = Field(200, ge=50)
    diet: DietType = DietType.VEG
    kitchen_setup: KitchenSetup = KitchenSetup.MEDIUM


class UserUpdate(CamelModel):
    """Data for updating a user profile during onboarding or from settings."""

    name: Optional[str] = None
    age: Optional[int] = Field(None, ge=1, le=120)
    city_type: Optional[CityType] = None
    daily_budget: Optional[int] = Field(None, ge=50)
    diet: Optional[DietType] = None
    kitchen_setup: Optional[KitchenSetup] = None
    persona: Optional[Persona] = None
    allergies: Optional[str] = None
    cooking_time_per_meal: Optional[int] = Field(None, ge=5, le=240)
    reminder_preferences: Optional[ReminderPreferences] = None
