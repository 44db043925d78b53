"""Data models for ChefSync."""

from .meal import (
    CityType,
    CookingInput,
    CookingPlan,
    CookingStep,
    DailySchedule,
    DayPlan,
    DietType,
    EnergyLevel,
    FallbackOption,
    GroceryItem,
    GroceryList,
    KitchenSetup,
    MealType,
    OptimizationGoal,
    PlanMetadata,
    RecipeOption,
    ScheduleAudit,
    Substitution,
)
from .user import Pantry, Persona, ReminderPreferences, UserCreate, UserPreferences, UserProfile, UserUpdate
from .diagnostics import TestResult

__all__ = [
    "CityType",
    "CookingInput",
    "CookingPlan",
    "CookingStep",
    "DailySchedule",
    "DayPlan",
    "DietType",
    "EnergyLevel",
    "FallbackOption",
    "GroceryItem",
    "GroceryList",
    "KitchenSetup",
    "MealType",
    "OptimizationGoal",
    "Pantry",
    "Persona",
    "PlanMetadata",
    "RecipeOption",
    "ReminderPreferences",
    "ScheduleAudit",
    "Substitution",
    "TestResult",
    "UserCreate",
    "UserPreferences",
    "UserProfile",
    "UserUpdate",
]
