"""User profile store: onboarding data, pantry and preferences."""

import logging
from typing import Dict, List, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from chefsync.db.storage import ProfileStorage
from chefsync.errors import ProfileNotFoundError, ValidationError
from chefsync.models.meal import CookingPlan, KitchenSetup
from chefsync.models.user import (
    PANTRY_CATEGORIES,
    Pantry,
    Persona,
    UserCreate,
    UserProfile,
    UserUpdate,
    parse_clock,
)
from chefsync.analytics import track_event

logger = logging.getLogger(__name__)


PERSONA_DEFAULTS = {
    Persona.WORKING_PROFESSIONAL: {"time": 30, "setup": KitchenSetup.MEDIUM, "budget": 400, "slot": "18:30", "slot_end": "20:00"},
    Persona.STUDENT: {"time": 20, "setup": KitchenSetup.BASIC, "budget": 200, "slot": "19:00", "slot_end": "20:30"},
    Persona.HOUSEHOLD: {"time": 60, "setup": KitchenSetup.FULL, "budget": 600, "slot": "17:00", "slot_end": "19:00"},
}

MIN_ONBOARDING_AGE = 12
MAX_ONBOARDING_AGE = 110


def _field_errors(error: PydanticValidationError) -> Dict[str, str]:
    return {".".join(str(p) for p in e["loc"]): e["msg"] for e in error.errors()}


def reminder_window_errors(start: str, end: str) -> Optional[str]:
    """Return a message when ``end`` is not strictly after ``start`` ("HH:MM")."""
    start_time, end_time = parse_clock(start), parse_clock(end)
    if start_time is None or end_time is None:
        return "Times must be HH:MM"
    if end_time <= start_time:
        return "Cooking slot must end after it starts"
    return None


class UserProfileStore:
    """Holds every profile in memory and flushes the whole set after each mutation.

    Profiles are loaded once from ``storage`` when the store is built.
    """

    def __init__(self, storage: ProfileStorage):
        self.storage = storage
        self._users: List[UserProfile] = storage.load_all()
        logger.info("Loaded %d profiles from %s", len(self._users), type(storage).__name__)

    @property
    def users(self) -> List[UserProfile]:
        return list(self._users)

    def get(self, user_id: str) -> Optional[UserProfile]:
        for user in self._users:
            if user.id == user_id:
                return user
        return None

    def require(self, user_id: str) -> UserProfile:
        user = self.get(user_id)
        if user is None:
            raise ProfileNotFoundError(user_id)
        return user

    def flush(self) -> None:
        self.storage.save_all(self._users)

    def _replace(self, updated: UserProfile) -> UserProfile:
        self._users = [updated if u.id == updated.id else u for u in self._users]
        self.flush()
        return updated

    # Profile lifecycle
    def create_user(self, data: Optional[UserCreate] = None) -> UserProfile:
        """Create a new profile at the start of onboarding."""
        data = data or UserCreate()
        user = UserProfile(**data.model_dump())
        self._users = [*self._users, user]
        self.flush()
        track_event("user_created", userId=user.id, cityType=user.city_type.value)
        return user

    def apply_persona(self, user_id: str, persona: Persona) -> UserProfile:
        """Select a persona and reset budget, kitchen, time and cooking slot to its defaults."""
        user = self.require(user_id)
        defaults = PERSONA_DEFAULTS[persona]
        reminders = user.reminder_preferences.model_copy(
            update={"cooking_slot_start": defaults["slot"], "cooking_slot_end": defaults["slot_end"]}
        )
        return self._replace(user.model_copy(update={
            "persona": persona,
            "daily_budget": defaults["budget"],
            "kitchen_setup": defaults["setup"],
            "cooking_time_per_meal": defaults["time"],
            "reminder_preferences": reminders,
        }))

    def update_user(self, user_id: str, changes: UserUpdate) -> UserProfile:
        """Apply the fields set on ``changes``."""
        user = self.require(user_id)
        if changes.reminder_preferences is not None:
            prefs = changes.reminder_preferences
            problem = reminder_window_errors(prefs.cooking_slot_start, prefs.cooking_slot_end)
            if problem:
                raise ValidationError(problem, {"reminderPreferences": problem})
        update = {
            field: getattr(changes, field)
            for field in changes.model_fields_set
            if getattr(changes, field) is not None
        }
        return self._replace(user.model_copy(update=update))

    def update_fields(self, user_id: str, **fields) -> UserProfile:
        """Validate raw keyword changes as a UserUpdate and apply them."""
        try:
            changes = UserUpdate(**fields)
        except PydanticValidationError as e:
            raise ValidationError("Invalid profile update", _field_errors(e)) from e
        return self.update_user(user_id, changes)

    def complete_onboarding(self, user_id: str) -> UserProfile:
        user = self.require(user_id)
        errors = {}
        if not user.name.strip():
            errors["name"] = "Identification required."
        if user.age < MIN_ONBOARDING_AGE or user.age > MAX_ONBOARDING_AGE:
            errors["age"] = "Input valid age."
        if errors:
            raise ValidationError("Onboarding is incomplete", errors)
        updated = self._replace(user.model_copy(update={"onboarding_complete": True}))
        track_event("onboarding_complete", userId=user_id, persona=user.persona.value if user.persona else None)
        return updated

    def update_preferences(self, user_id: str, high_quality_visuals: bool) -> UserProfile:
        user = self.require(user_id)
        prefs = user.preferences.model_copy(update={"high_quality_visuals": high_quality_visuals})
        track_event("preferences_updated", userId=user_id, highQualityVisuals=high_quality_visuals)
        return self._replace(user.model_copy(update={"preferences": prefs}))

    # Pantry
    def update_pantry(self, user_id: str, pantry: Pantry) -> UserProfile:
        """Replace the pantry. Categories left out are stored as empty lists."""
        user = self.require(user_id)
        pantry = Pantry.model_validate(pantry.model_dump())
        return self._replace(user.model_copy(update={"pantry": pantry}))

    def add_pantry_item(self, user_id: str, category: str, item: str) -> UserProfile:
        user = self.require(user_id)
        item = item.strip()
        if not item:
            return user
        items = self._category(user, category)
        return self.update_pantry(user_id, user.pantry.model_copy(update={category: [*items, item]}))

    def remove_pantry_item(self, user_id: str, category: str, item: str) -> UserProfile:
        user = self.require(user_id)
        items = [i for i in self._category(user, category) if i != item]
        return self.update_pantry(user_id, user.pantry.model_copy(update={category: items}))

    @staticmethod
    def _category(user: UserProfile, category: str) -> List[str]:
        if category not in PANTRY_CATEGORIES:
            raise ValidationError(f"Unknown pantry category {category!r}", {"category": category})
        return list(getattr(user.pantry, category))

    # Plans
    def replace_plans(self, user_id: str, plans: Sequence[CookingPlan]) -> UserProfile:
        """Swap in a user's complete plan list in one assignment, then flush."""
        user = self.require(user_id)
        return self._replace(user.model_copy(update={"plans": list(plans)}))
