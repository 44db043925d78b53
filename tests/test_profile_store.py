"""
Tests for UserProfileStore: onboarding, personas, pantry and preferences.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from chefsync.errors import ProfileNotFoundError, ValidationError
from chefsync.models.meal import KitchenSetup
from chefsync.models.user import PANTRY_CATEGORIES, Pantry, Persona, ReminderPreferences, UserCreate


@pytest.fixture
def fresh(profiles):
    return profiles.create_user()


class TestLifecycle:
    """Creation and onboarding."""

    def test_create_user_defaults(self, profiles, storage, fresh):
        assert fresh.onboarding_complete is False
        assert sorted(fresh.pantry.categories()) == sorted(PANTRY_CATEGORIES)
        assert "Onion" in fresh.pantry.veg
        assert fresh.plans == []
        assert profiles.users == [fresh]
        assert storage.writes == 1

    def test_create_rejects_low_budget(self):
        with pytest.raises(PydanticValidationError):
            UserCreate(daily_budget=20)

    def test_complete_onboarding_requires_name_and_age(self, profiles, fresh):
        profiles.update_fields(fresh.id, age=8)

        with pytest.raises(ValidationError) as excinfo:
            profiles.complete_onboarding(fresh.id)

        assert set(excinfo.value.errors) == {"name", "age"}
        assert not profiles.require(fresh.id).onboarding_complete

    def test_complete_onboarding(self, profiles, fresh):
        profiles.update_fields(fresh.id, name="Meera", age=34)

        user = profiles.complete_onboarding(fresh.id)

        assert user.onboarding_complete
        assert profiles.require(fresh.id).name == "Meera"

    def test_unknown_user(self, profiles):
        with pytest.raises(ProfileNotFoundError):
            profiles.require("nobody")


class TestUpdates:
    """Profile edits from onboarding and settings."""

    def test_persona_defaults(self, profiles, fresh):
        user = profiles.apply_persona(fresh.id, Persona.STUDENT)

        assert user.persona == Persona.STUDENT
        assert user.daily_budget == 200
        assert user.kitchen_setup == KitchenSetup.BASIC
        assert user.cooking_time_per_meal == 20
        assert user.reminder_preferences.cooking_slot_start == "19:00"
        assert user.reminder_preferences.cooking_slot_end == "20:30"

    def test_budget_floor(self, profiles, fresh):
        with pytest.raises(ValidationError) as excinfo:
            profiles.update_fields(fresh.id, daily_budget=49)

        assert excinfo.value.errors
        assert profiles.require(fresh.id).daily_budget == fresh.daily_budget

    def test_reminder_window_must_end_after_start(self, profiles, fresh):
        with pytest.raises(ValidationError):
            profiles.update_fields(
                fresh.id,
                reminder_preferences=ReminderPreferences(cooking_slot_start="20:00", cooking_slot_end="18:00"),
            )

    def test_only_set_fields_change(self, profiles, fresh):
        user = profiles.update_fields(fresh.id, allergies="peanuts")

        assert user.allergies == "peanuts"
        assert user.daily_budget == fresh.daily_budget
        assert user.city_type == fresh.city_type

    def test_preferences(self, profiles, fresh):
        user = profiles.update_preferences(fresh.id, high_quality_visuals=True)

        assert user.preferences.high_quality_visuals is True


class TestPantry:
    """Pantry edits."""

    def test_add_and_remove(self, profiles, fresh):
        profiles.add_pantry_item(fresh.id, "masalas", " Garam Masala ")
        assert profiles.require(fresh.id).pantry.masalas[-1] == "Garam Masala"

        user = profiles.remove_pantry_item(fresh.id, "masalas", "Salt")
        assert "Salt" not in user.pantry.masalas

    def test_blank_item_ignored(self, profiles, storage, fresh):
        writes = storage.writes

        profiles.add_pantry_item(fresh.id, "veg", "   ")

        assert storage.writes == writes
        assert profiles.require(fresh.id).pantry.veg == fresh.pantry.veg

    def test_partial_pantry_stored_with_all_categories(self, profiles, fresh):
        user = profiles.update_pantry(fresh.id, Pantry(veg=["Carrot"]))

        assert sorted(user.pantry.categories()) == sorted(PANTRY_CATEGORIES)
        assert user.pantry.masalas == []

    def test_unknown_category(self, profiles, fresh):
        with pytest.raises(ValidationError):
            profiles.add_pantry_item(fresh.id, "dairy", "Milk")

    def test_all_items_order(self, fresh):
        assert fresh.pantry.all_items()[:4] == ["Onion", "Garlic", "Potato", "Tomato"]
        assert fresh.pantry.all_items()[4] == "Egg"
