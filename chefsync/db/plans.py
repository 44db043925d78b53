"""Plan store: adopted plans per user, unique per (date, meal type) slot."""

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from chefsync.config import local_today
from chefsync.db.profiles import UserProfileStore
from chefsync.models.meal import CookingPlan, MealType
from chefsync.analytics import track_event

logger = logging.getLogger(__name__)

Slot = Tuple[str, MealType]

UPCOMING_DAYS = 7
RECENT_LIMIT = 9


class PlanStore:
    """Durable mapping from slot to CookingPlan, kept most-recent-first.

    Every write builds the complete new list first and hands it to the profile
    store in one assignment, so no reader ever sees two plans for one slot.
    """

    def __init__(self, profiles: UserProfileStore):
        self.profiles = profiles

    def plans(self, user_id: str) -> List[CookingPlan]:
        return list(self.profiles.require(user_id).plans)

    def add_plan(self, user_id: str, plan: CookingPlan) -> CookingPlan:
        """Insert ``plan`` at the front, replacing whatever occupied its slot."""
        existing = self.profiles.require(user_id).plans
        survivors = [p for p in existing if p.slot != plan.slot]
        self.profiles.replace_plans(user_id, [plan, *survivors])
        track_event("meal_planned", userId=user_id, recipeName=plan.recipe_name)
        return plan

    def add_batch_plans(self, user_id: str, plans: Sequence[CookingPlan]) -> List[CookingPlan]:
        """Insert a whole batch ahead of the surviving plans in one update.

        Old plans whose slot appears in the batch are dropped. When the batch
        itself holds two plans for one slot, the later one wins.
        """
        batch: Dict[Slot, CookingPlan] = {}
        for plan in plans:
            if plan.slot in batch:
                logger.info("Batch holds two plans for %s %s; keeping the later", *plan.slot)
                del batch[plan.slot]
            batch[plan.slot] = plan
        incoming = list(batch.values())

        existing = self.profiles.require(user_id).plans
        survivors = [p for p in existing if p.slot not in batch]
        self.profiles.replace_plans(user_id, [*incoming, *survivors])
        track_event("schedule_committed", userId=user_id, count=len(incoming))
        return incoming

    # Queries
    def get_plan(self, user_id: str, date_str: str, meal_type: MealType) -> Optional[CookingPlan]:
        for plan in self.profiles.require(user_id).plans:
            if plan.slot == (date_str, meal_type):
                return plan
        return None

    def plans_for_date(self, user_id: str, date_str: str) -> List[CookingPlan]:
        return [p for p in self.profiles.require(user_id).plans if p.metadata.date == date_str]

    def recent_plans(self, user_id: str, limit: int = RECENT_LIMIT) -> List[CookingPlan]:
        """Plans sorted by date, newest first."""
        plans = sorted(
            self.profiles.require(user_id).plans,
            key=lambda p: p.metadata.date,
            reverse=True,
        )
        return plans[:limit]

    def upcoming_week(self, user_id: str, today: Optional[date] = None) -> Dict[str, List[CookingPlan]]:
        """Plans for today and the six following days, keyed by ISO date."""
        today = today or local_today()
        return {
            day: self.plans_for_date(user_id, day)
            for day in ((today + timedelta(days=i)).isoformat() for i in range(UPCOMING_DAYS))
        }
