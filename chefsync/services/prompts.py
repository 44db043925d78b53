"""
Prompt templates and response schemas for the generation service.
"""

import json
from datetime import date, timedelta
from typing import Any, Dict, List

from chefsync.models.meal import CityType, CookingInput, DailySchedule, MealType


def _string() -> Dict[str, Any]:
    return {"type": "STRING"}


def _string_list() -> Dict[str, Any]:
    return {"type": "ARRAY", "items": _string()}


RECIPE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "recipeName": _string(),
        "description": _string(),
        "totalTime": _string(),
        "ingredientsUsed": _string_list(),
        "substitutions": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "original": _string(),
                    "replacement": _string(),
                    "reason": _string(),
                },
            },
        },
        "prepChecklist": _string_list(),
        "cookingSequence": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "instruction": _string(),
                    "timeEstimate": _string(),
                },
            },
        },
        "additionalNotes": _string(),
        "budgetFeasibility": _string(),
        "estimatedCostValue": {"type": "NUMBER"},
        "isFallback": {"type": "BOOLEAN"},
        "imagePrompt": _string(),
        "fallbacks": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "recipeName": _string(),
                    "description": _string(),
                    "estimatedCostValue": {"type": "NUMBER"},
                },
            },
        },
    },
    "required": [
        "recipeName",
        "description",
        "totalTime",
        "ingredientsUsed",
        "prepChecklist",
        "cookingSequence",
        "budgetFeasibility",
        "estimatedCostValue",
        "imagePrompt",
    ],
}

SCHEDULE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "days": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "date": _string(),
                    "breakfast": RECIPE_SCHEMA,
                    "lunch": RECIPE_SCHEMA,
                    "dinner": RECIPE_SCHEMA,
                },
                "required": ["date", "breakfast", "lunch", "dinner"],
            },
        },
    },
    "required": ["days"],
}

RECIPE_LIST_SCHEMA: Dict[str, Any] = {"type": "ARRAY", "items": RECIPE_SCHEMA}

GROCERY_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "items": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "item": _string(),
                    "quantity": _string(),
                    "estimatedCost": _string(),
                    "category": _string(),
                },
                "required": ["item", "quantity", "estimatedCost", "category"],
            },
        },
        "totalEstimatedBudget": _string(),
        "budgetFeasibilityNote": _string(),
    },
    "required": ["items", "totalEstimatedBudget"],
}

AUDIT_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "score": {"type": "INTEGER"},
        "report": _string(),
        "compliance": {"type": "STRING", "enum": ["COMPLIANT", "NON_COMPLIANT"]},
    },
    "required": ["score", "report", "compliance"],
}


def schedule_dates(start: str, days: int) -> List[str]:
    """ISO dates for ``days`` consecutive days beginning at ``start``."""
    first = date.fromisoformat(start)
    return [(first + timedelta(days=offset)).isoformat() for offset in range(days)]


def _profile_lines(cooking_input: CookingInput) -> str:
    goal = (
        f"Optimize specifically for {cooking_input.optimization_goal.value}."
        if cooking_input.optimization_goal
        else "No specific optimization."
    )
    allergies = cooking_input.allergies.strip() if cooking_input.allergies else ""
    lines = [
        f"- Diet: {cooking_input.diet.value}",
        f"- Kitchen: {cooking_input.kitchen_setup.value}",
        f"- Energy: {cooking_input.energy_level.value}",
        f"- Time available per meal: {cooking_input.time_available} minutes",
        f"- Optimization: {goal}",
    ]
    if allergies:
        lines.append(f"- Allergies (never use): {allergies}")
    return "\n".join(lines)


def get_schedule_prompt(cooking_input: CookingInput, days: int) -> str:
    """Prompt for a multi-day breakfast/lunch/dinner schedule."""
    dates = ", ".join(schedule_dates(cooking_input.target_date, days))
    ingredients = ", ".join(cooking_input.ingredients)
    return f"""Act as a professional chef and strict budget meal planning auditor.
Generate a full {days}-day cooking schedule (Breakfast, Lunch, Dinner for each day).

CRITICAL COMPLIANCE RULES:
1. INGREDIENT LOCK: Every single meal MUST use at least 3 ingredients from this specific list: [{ingredients}].
2. BUDGET VALIDATION GATE: Each meal must not exceed a 1/3 portion of the daily budget of {cooking_input.daily_budget} INR ({cooking_input.meal_budget} INR per meal) for a {cooking_input.city_type.value} economy.
3. EXPLICIT FALLBACKS: If a meal's cost is risky, mark it "Budget Risk" and provide exactly two ranked "Ultra-Budget Fallback" options within the 'fallbacks' array of that recipe object. Otherwise mark it "Budget Validated".
4. Labels: Fallbacks MUST be titled "Ultra-Budget Fallback 1" and "Ultra-Budget Fallback 2".
5. DAY-BASED OUTPUT: One entry per day, in order, with these ISO dates: {dates}.

User Profile:
{_profile_lines(cooking_input)}

Output JSON only in the schema provided."""


def get_swap_prompt(cooking_input: CookingInput, date_str: str, meal_type: MealType) -> str:
    """Prompt for one replacement recipe in a single slot."""
    ingredients = ", ".join(cooking_input.ingredients)
    return f"""Act as a professional chef and strict budget meal planning auditor.
Suggest ONE new {meal_type.value.lower()} recipe for {date_str} to replace the current one.

CRITICAL COMPLIANCE RULES:
1. INGREDIENT LOCK: The meal MUST use at least 3 ingredients from this list: [{ingredients}].
2. BUDGET VALIDATION GATE: The meal must not exceed {cooking_input.meal_budget} INR (1/3 of a {cooking_input.daily_budget} INR daily budget) for a {cooking_input.city_type.value} economy.
3. EXPLICIT FALLBACKS: If the cost is risky, mark it "Budget Risk" and provide exactly two ranked cheaper options in 'fallbacks'.

User Profile:
{_profile_lines(cooking_input)}

Output JSON only in the schema provided."""


def get_discovery_prompt(ingredients: List[str], city_type: CityType) -> str:
    """Prompt for ad-hoc recipe discovery from free-form ingredients."""
    ingredient_list = ", ".join(ingredients)
    return f"""Discover 4 creative and budget-friendly recipes using these ingredients: {ingredient_list}.
Adjust costs for a {city_type.value} economy in INR. Provide full recipe details in JSON."""


def get_grocery_prompt(recipes: List[str], city_type: CityType) -> str:
    """Prompt for a consolidated grocery list.

    ``recipes`` holds one "name: ingredient, ingredient" line per recipe.
    """
    recipe_lines = "\n".join(recipes)
    return f"""Build one consolidated grocery list for these recipes:
{recipe_lines}

Merge duplicate ingredients across recipes, give a quantity, a category and a city-adjusted INR cost estimate for each item for a {city_type.value} economy, and the total estimated budget. JSON format."""


def get_audit_prompt(schedule: DailySchedule, cooking_input: CookingInput) -> str:
    """Prompt for an independent audit of a generated schedule."""
    schedule_json = json.dumps(schedule.model_dump(by_alias=True, mode="json"), indent=2)
    ingredients = ", ".join(cooking_input.ingredients)
    avoid = f" and avoids: {cooking_input.allergies}" if cooking_input.allergies else ""
    return f"""Act as an independent culinary quality and compliance auditor.
Audit this meal schedule against the rules below and score its overall quality from 0 to 100.

Rules:
1. Every meal uses at least 3 ingredients from: [{ingredients}].
2. No meal exceeds {cooking_input.meal_budget} INR for a {cooking_input.city_type.value} economy.
3. Every meal respects the {cooking_input.diet.value} diet{avoid}.

Schedule:
{schedule_json}

Return "COMPLIANT" only if every rule holds for every meal, otherwise "NON_COMPLIANT", with a short report."""
