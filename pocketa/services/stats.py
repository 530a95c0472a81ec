"""Dashboard figures for the current calendar month."""

from calendar import monthrange
from datetime import datetime
from typing import Iterable

from beanie import PydanticObjectId

from pocketa.core.exceptions import NotFoundError
from pocketa.db.store import RecordStore
from pocketa.models.records import TransactionRecord
from pocketa.models.transaction import CATEGORIES
from pocketa.services.allowances import start_of_month


def category_breakdown(transactions: Iterable[TransactionRecord]) -> dict[str, float]:
    totals = {c: 0.0 for c in CATEGORIES}
    for t in transactions:
        if t.category in CATEGORIES:
            totals[t.category] += t.amount
    return totals


def budget_line(spent: float, budget: float) -> dict:
    # remaining is clamped for display; overspend shows as spent > budget
    return {"spent": spent, "budget": budget, "remaining": max(0.0, budget - spent)}


async def monthly_stats(store: RecordStore, user_id: PydanticObjectId, now: datetime | None = None) -> dict:
    """Per-category spending this month against the allowance and essentials budgets.

    The allowance budget is the most recent deposit; the essentials budget is
    the sum of active essentials. Extra spending has no budget.
    """
    user = await store.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    now = now or datetime.utcnow()
    start = start_of_month(now)
    end = start.replace(day=monthrange(start.year, start.month)[1])

    essentials = await store.list_essentials(user_id)
    spending = await store.list_transactions(user_id, since=start)
    by_category = category_breakdown(spending)
    total_essentials = sum(e.amount for e in essentials)
    total_spent = sum(t.amount for t in spending)

    return {
        "currentBalance": user.current_balance,
        "lastAllowanceAmount": user.last_allowance_amount,
        "allowance": budget_line(by_category["Allowance"], user.last_allowance_amount),
        "essentials": budget_line(by_category["Essentials"], total_essentials),
        "extra": {"spent": by_category["Extra"], "budget": 0, "remaining": 0},
        "totalSpentThisMonth": total_spent,
        "totalEssentials": total_essentials,
        "essentialsCount": len(essentials),
        "transactionsCount": len(spending),
        "categoryBreakdown": by_category,
        "currentPeriod": {"start": start.isoformat(), "end": end.isoformat(), "type": "monthly"},
    }
