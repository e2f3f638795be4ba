"""
Seed Demo Data Script
Creates a demo user with a handful of reef tanks so a fresh database has
something to show on the explore page. Safe to run repeatedly.

    python -m reefing.scripts.seed_demo_data
"""

from reefing.database.supabase_client import SupabaseClient
from reefing.modules.users.service import UserService
from supabase import Client
import logging
import sys

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_USER = {
    "email": "demo@reefing.com",
    "name": "Demo User",
    "identity_provider_id": "auth0|demo-user-123",
}

REEF_TANKS = [
    {
        "name": "Main Reef Display",
        "type": "reef",
        "volume": 180,
        "description": "Large mixed reef tank with SPS, LPS, and soft corals. Heavy bioload with multiple fish.",
    },
    {
        "name": "Nano Reef",
        "type": "reef",
        "volume": 25,
        "description": "Small nano reef focused on soft corals and a few small fish. Perfect for beginners.",
    },
    {
        "name": "SPS Dominant Tank",
        "type": "reef",
        "volume": 120,
        "description": "High-light SPS dominant tank with acropora and montipora colonies. Requires stable parameters.",
    },
    {
        "name": "Lagoon Biotope",
        "type": "reef",
        "volume": 90,
        "description": "Shallow lagoon-style reef with gentle flow. Focus on mushrooms, zoanthids, and gentle LPS.",
    },
]


def seed_demo_user(supabase: Client):
    """Find the demo user by email or create it"""
    service = UserService(supabase)
    user = service.find_by_email(DEMO_USER["email"])
    if user:
        logger.info(f"Demo user found: {user.email}")
        return user

    user = service.create(DEMO_USER["identity_provider_id"], DEMO_USER["email"], DEMO_USER["name"])
    logger.info(f"Demo user created: {user.email} ({user.username})")
    return user


def seed_aquariums(supabase: Client, user_id: str) -> int:
    """Create each demo tank the user does not already have (matched by name)"""
    existing = supabase.table("aquariums")\
        .select("name")\
        .eq("user_id", user_id)\
        .execute()
    existing_names = {row["name"] for row in existing.data or []}

    created_count = 0
    for tank in REEF_TANKS:
        if tank["name"] in existing_names:
            logger.debug(f"Aquarium already present: {tank['name']}")
            continue
        try:
            supabase.table("aquariums").insert({**tank, "user_id": user_id}).execute()
            created_count += 1
            logger.info(f"Created aquarium: {tank['name']} ({tank['volume']}g)")
        except Exception as e:
            logger.error(f"Error creating aquarium {tank['name']}: {e}")

    logger.info(f"Aquariums seeded: {created_count} created, {len(REEF_TANKS) - created_count} skipped")
    return created_count


def main():
    logger.info("Starting seed...")
    try:
        supabase = SupabaseClient.get_service_client()
        user = seed_demo_user(supabase)
        seed_aquariums(supabase, user.id)
    except Exception as e:
        logger.error(f"Seed error: {e}")
        return 1
    logger.info("Seed completed!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
