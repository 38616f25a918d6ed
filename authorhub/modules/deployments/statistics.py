from supabase import Client
from datetime import datetime
from typing import Optional
from authorhub.modules.deployments.schemas import DatabaseStatistics, TableStats
import logging

logger = logging.getLogger(__name__)

TRACKED_TABLES = [
    ("profiles", "User Profiles"),
    ("books", "Books"),
    ("blog_posts", "Blog Posts"),
    ("events", "Events"),
    ("awards", "Awards"),
    ("faqs", "FAQs"),
    ("gallery_items", "Gallery Items"),
    ("contact_submissions", "Contact Submissions"),
    ("user_subscriptions", "Subscriptions"),
    ("newsletter_subscribers", "Newsletter Subscribers"),
    ("themes", "Themes"),
    ("custom_domains", "Custom Domains"),
]


def _count(supabase: Client, table: str, created_before: Optional[datetime] = None) -> Optional[int]:
    query = supabase.table(table).select("*", count="exact", head=True)
    if created_before is not None:
        query = query.lte("created_at", created_before.isoformat())
    return query.execute().count


def database_statistics(supabase: Client, last_deployed_at: Optional[datetime] = None) -> DatabaseStatistics:
    """Row counts per tracked table, split by whether rows predate the last deployment"""
    tables = []
    for table, label in TRACKED_TABLES:
        try:
            total = _count(supabase, table)
            if total is None:
                continue
            transferred = 0
            if last_deployed_at is not None:
                transferred = _count(supabase, table, last_deployed_at) or 0
            tables.append(TableStats(
                table=table,
                label=label,
                total=total,
                transferred=transferred,
                pending=total - transferred,
            ))
        except Exception as e:
            logger.info(f"Error counting {table}: {str(e)}")

    return DatabaseStatistics(
        table_count=len(tables),
        total_records=sum(t.total for t in tables),
        transferred=sum(t.transferred for t in tables),
        pending=sum(t.pending for t in tables),
        tables=tables,
        last_deployed_at=last_deployed_at,
    )
