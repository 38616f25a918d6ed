"""
Seed Defaults Script
Populates the default cookie categories and subscription plans.
Existing rows (matched by name) are updated, never duplicated.
Run with: python -m authorhub.scripts.seed_defaults
"""

import sys
from authorhub.database.supabase_client import SupabaseClient
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_COOKIE_CATEGORIES = [
    {
        "name": "necessary",
        "display_name": "Necessary",
        "description": "Essential cookies required for the website to function properly.",
        "is_required": True,
        "is_enabled": True,
        "sort_order": 1,
        "cookies": ["session_id", "csrf_token", "auth_token"],
    },
    {
        "name": "analytics",
        "display_name": "Analytics",
        "description": "Help us understand how visitors interact with our website.",
        "is_required": False,
        "is_enabled": True,
        "sort_order": 2,
        "cookies": ["_ga", "_gtag", "_gid", "analytics_session"],
    },
    {
        "name": "marketing",
        "display_name": "Marketing",
        "description": "Used to deliver personalized advertisements and track campaign performance.",
        "is_required": False,
        "is_enabled": True,
        "sort_order": 3,
        "cookies": ["fb_pixel", "google_ads", "marketing_id"],
    },
    {
        "name": "functional",
        "display_name": "Functional",
        "description": "Enable enhanced functionality and personalization.",
        "is_required": False,
        "is_enabled": True,
        "sort_order": 4,
        "cookies": ["theme_preference", "language", "user_preferences"],
    },
]

DEFAULT_PLANS = [
    {
        "name": "Free",
        "price_monthly": 0,
        "price_yearly": 0,
        "max_books": 3,
        "max_publications": 3,
        "features": ["Author profile", "Up to 3 books", "Basic themes"],
        "custom_domain": False,
        "advanced_analytics": False,
        "premium_themes": False,
        "no_watermark": False,
        "contact_form": True,
        "newsletter_integration": False,
        "blog": True,
        "events": False,
        "gallery": False,
        "faq": True,
        "awards": False,
    },
    {
        "name": "Pro",
        "price_monthly": 9.99,
        "price_yearly": 99.99,
        "max_books": -1,
        "max_publications": -1,
        "features": ["Unlimited books", "Premium themes", "Custom domain", "Advanced analytics"],
        "custom_domain": True,
        "advanced_analytics": True,
        "premium_themes": True,
        "no_watermark": True,
        "contact_form": True,
        "newsletter_integration": True,
        "blog": True,
        "events": True,
        "gallery": True,
        "faq": True,
        "awards": True,
    },
]


def upsert_by_name(supabase: Client, table: str, rows: list) -> tuple:
    """Insert rows whose name is new, update the rest. Returns (created, updated)"""
    created_count = 0
    updated_count = 0

    for row in rows:
        try:
            existing = supabase.table(table)\
                .select("id")\
                .eq("name", row["name"])\
                .execute()

            if existing.data:
                supabase.table(table)\
                    .update(row)\
                    .eq("name", row["name"])\
                    .execute()
                updated_count += 1
                logger.debug(f"Updated {table}: {row['name']}")
            else:
                supabase.table(table).insert(row).execute()
                created_count += 1
                logger.debug(f"Created {table}: {row['name']}")
        except Exception as e:
            logger.error(f"Error processing {table} row {row['name']}: {e}")

    logger.info(f"{table} seeded: {created_count} created, {updated_count} updated")
    return created_count, updated_count


def main():
    """Seed cookie categories and subscription plans"""
    try:
        supabase = SupabaseClient.get_service_client()

        logger.info("Starting default data seeding...")
        upsert_by_name(supabase, "cookie_categories", DEFAULT_COOKIE_CATEGORIES)
        upsert_by_name(supabase, "subscription_plans", DEFAULT_PLANS)
        logger.info("Seeding completed successfully!")

    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
