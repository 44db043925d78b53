"""Main entry point for ChefSync."""

import asyncio
import logging
import sys

from chefsync.config import get_settings
from chefsync.db import PlanStore, UserProfileStore, get_storage
from chefsync.services import ChefSession, GenerationClient

logger = logging.getLogger(__name__)


def build_session() -> ChefSession:
    """Wire storage, stores and the generation client from settings."""
    settings = get_settings()
    profiles = UserProfileStore(get_storage(settings))
    plans = PlanStore(profiles)
    return ChefSession(profiles, plans, GenerationClient(settings=settings))


async def main(include_ai: bool = True) -> int:
    """Load every profile and print the diagnostics report."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    print("Starting ChefSync diagnostics...")

    session = build_session()
    print(f"Loaded {len(session.profiles.users)} profiles ({settings.storage_backend} storage)")

    result = await session.run_diagnostics(include_ai=include_ai)
    for row in result.payload:
        print(f"[{row.status.upper():7}] {row.name}")
        if row.error:
            print(f"          {row.error}")
    print(result.message)
    return 1 if any(row.status == "failed" for row in result.payload) else 0


def run():
    """Entry point for running the diagnostics report."""
    include_ai = "--no-ai" not in sys.argv[1:]
    sys.exit(asyncio.run(main(include_ai)))


if __name__ == "__main__":
    run()
