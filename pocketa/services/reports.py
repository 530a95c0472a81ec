"""Monthly and annual expense reports.

Expenses are bucketed by their spend ``date``; allowance deposits by the time
they were recorded. Money figures are rounded to cents on the way out.
"""

import calendar
from datetime import datetime

from beanie import PydanticObjectId

from pocketa.core.exceptions import BadRequestError
from pocketa.db.store import RecordStore
from pocketa.services.stats import category_breakdown

MIN_REPORT_YEAR = 2020
MAX_REPORT_YEAR = 2100
TOP_EXPENSES = 5


def _cents(value: float) -> float:
    return round(value, 2)


def _month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    start = datetime(year, month, 1)
    end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
    return start, end


def _valid_year(year: int | None) -> bool:
    return year is not None and MIN_REPORT_YEAR <= year <= MAX_REPORT_YEAR


async def monthly_report(
    store: RecordStore, user_id: PydanticObjectId, month: int | None, year: int | None, now: datetime | None = None
) -> dict:
    if not _valid_year(year) or month is None or not 1 <= month <= 12:
        raise BadRequestError("Invalid month or year")
    now = now or datetime.utcnow()
    start, end = _month_bounds(year, month)

    spending = list(await store.transactions_dated(user_id, start, end))
    deposits = await store.list_allowances(user_id, since=start, until=end)
    spending.sort(key=lambda t: t.amount, reverse=True)

    total_expenses = sum(t.amount for t in spending)
    total_allowance = sum(a.amount for a in deposits)
    allowance_spent = sum(t.amount for t in spending if t.category == "Allowance")

    # the running month is averaged over the days elapsed so far
    if (year, month) == (now.year, now.month):
        days = now.day
    else:
        days = calendar.monthrange(year, month)[1]

    return {
        "month": month,
        "year": year,
        "totalExpenses": _cents(total_expenses),
        "totalAllowance": _cents(total_allowance),
        "remainingAllowance": _cents(max(0.0, total_allowance - allowance_spent)),
        "categoryBreakdown": category_breakdown(spending),
        "topExpenses": [
            {"description": t.description, "amount": t.amount, "category": t.category, "date": t.date.isoformat()}
            for t in spending[:TOP_EXPENSES]
        ],
        "dailyAverage": _cents(total_expenses / days),
        "transactionCount": len(spending),
    }


async def annual_report(
    store: RecordStore, user_id: PydanticObjectId, year: int | None, now: datetime | None = None
) -> dict:
    """Year summary with one entry per month up to the current one."""
    if not _valid_year(year):
        raise BadRequestError("Invalid year")
    now = now or datetime.utcnow()
    start, end = datetime(year, 1, 1), datetime(year + 1, 1, 1)

    spending = await store.transactions_dated(user_id, start, end)
    deposits = await store.list_allowances(user_id, since=start, until=end)

    total_expenses = sum(t.amount for t in spending)
    total_allowance = sum(a.amount for a in deposits)
    allowance_spent = sum(t.amount for t in spending if t.category == "Allowance")
    by_category = category_breakdown(spending)

    months = now.month if year == now.year else 12
    monthly_totals = [0.0] * months
    for t in spending:
        if t.date.month <= months:
            monthly_totals[t.date.month - 1] += t.amount

    monthly_data = [
        {"month": m, "monthName": calendar.month_abbr[m], "totalExpenses": _cents(total)}
        for m, total in enumerate(monthly_totals, start=1)
    ]

    highest = {"monthName": "N/A", "totalExpenses": 0}
    lowest = {"monthName": "N/A", "totalExpenses": 0}
    spent_months = [(m, total) for m, total in enumerate(monthly_totals, start=1) if total > 0]
    if spent_months:
        m, total = max(spent_months, key=lambda x: x[1])
        highest = {"monthName": calendar.month_name[m], "totalExpenses": _cents(total)}
        m, total = min(spent_months, key=lambda x: x[1])
        lowest = {"monthName": calendar.month_name[m], "totalExpenses": _cents(total)}

    most_spent = max(by_category, key=by_category.get) if total_expenses > 0 else "Allowance"

    return {
        "year": year,
        "summary": {
            "totalExpenses": _cents(total_expenses),
            "totalAllowance": _cents(total_allowance),
            "totalSavings": _cents(max(0.0, total_allowance - allowance_spent)),
            "averageMonthlySpending": _cents(total_expenses / months),
        },
        "categoryBreakdown": by_category,
        "monthlyData": monthly_data,
        "insights": {
            "highestSpendingMonth": highest,
            "lowestSpendingMonth": lowest,
            "totalMonthsTracked": months,
            "mostSpentCategory": most_spent,
        },
    }
