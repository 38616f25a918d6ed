import csv
import io
from collections import Counter
from datetime import datetime
from typing import Any, Dict, Iterable, List
from authorhub.modules.cookies.schemas import (
    CategoryStats, ConsentAnalytics, ConsentLogResponse, DailyCount
)

DAILY_WINDOW = 7
CSV_HEADER = ["Date", "Action", "IP Address", "Accepted Categories", "Rejected Categories"]


def _rate(part: int, total: int) -> float:
    return round(part / total * 100, 1) if total else 0.0


def _categories(value: Any) -> List[str]:
    return [str(c) for c in value] if isinstance(value, list) else []


def _day(created_at: Any) -> str:
    if isinstance(created_at, datetime):
        return created_at.date().isoformat()
    return str(created_at)[:10]


def summarize_consents(logs: List[Dict[str, Any]], category_names: Iterable[str],
                       recent_limit: int = 10) -> ConsentAnalytics:
    """Aggregate consent log rows into banner analytics"""
    actions = Counter(row.get("consent_action") for row in logs)
    total = len(logs)

    stats = {name: CategoryStats() for name in category_names}
    for row in logs:
        for name in _categories(row.get("accepted_categories")):
            if name in stats:
                stats[name].accepted += 1
        for name in _categories(row.get("rejected_categories")):
            if name in stats:
                stats[name].rejected += 1

    per_day = Counter(_day(row["created_at"]) for row in logs if row.get("created_at"))
    days = sorted(per_day)[-DAILY_WINDOW:]

    newest_first = sorted(logs, key=lambda row: str(row.get("created_at") or ""), reverse=True)

    return ConsentAnalytics(
        total=total,
        accepted_all=actions.get("accept-all", 0),
        rejected_all=actions.get("reject-all", 0),
        custom=actions.get("custom", 0),
        consent_rate=_rate(actions.get("accept-all", 0), total),
        rejection_rate=_rate(actions.get("reject-all", 0), total),
        category_stats=stats,
        daily=[DailyCount(date=day, count=per_day[day]) for day in days],
        recent=[ConsentLogResponse(**row) for row in newest_first[:recent_limit]],
    )


def consent_logs_csv(logs: List[Dict[str, Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for row in logs:
        writer.writerow([
            _day(row.get("created_at") or ""),
            row.get("consent_action") or "",
            row.get("ip_address") or "",
            ";".join(_categories(row.get("accepted_categories"))),
            ";".join(_categories(row.get("rejected_categories"))),
        ])
    return buffer.getvalue()
