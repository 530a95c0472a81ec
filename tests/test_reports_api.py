"""Monthly and annual expense reports."""

from datetime import datetime

import pytest

from pocketa.core.exceptions import BadRequestError
from pocketa.services import reports as report_service

pytestmark = pytest.mark.asyncio


def _spend(store, user, amount, when, category="Allowance", description="expense"):
    store.add_transaction(user.id, amount, category=category, description=description, date=when, created_at=when)


async def test_monthly_report(client, store, auth_header):
    user = store.add_user()
    store.add_allowance(user.id, 300, created_at=datetime(2024, 2, 2))
    store.add_allowance(user.id, 999, created_at=datetime(2024, 3, 1))
    for i, amount in enumerate([10, 60.5, 5, 40, 25, 7]):
        _spend(store, user, amount, datetime(2024, 2, 3 + i), description=f"item {i}")
    _spend(store, user, 100, datetime(2024, 2, 10), category="Essentials")
    _spend(store, user, 500, datetime(2024, 3, 1))

    r = await client.get("/api/expense-reports/monthly", params={"month": 2, "year": 2024}, headers=auth_header(user))

    assert r.status_code == 200
    body = r.json()
    assert body["month"] == 2 and body["year"] == 2024
    assert body["totalExpenses"] == 247.5
    assert body["totalAllowance"] == 300
    assert body["remainingAllowance"] == 152.5
    assert body["categoryBreakdown"]["Essentials"] == 100
    assert [e["amount"] for e in body["topExpenses"]] == [100, 60.5, 40, 25, 10]
    # February 2024 has 29 days
    assert body["dailyAverage"] == round(247.5 / 29, 2)
    assert body["transactionCount"] == 7


async def test_monthly_report_current_month_averages_elapsed_days(store):
    user = store.add_user()
    _spend(store, user, 50, datetime(2026, 10, 2))
    report = await report_service.monthly_report(store, user.id, 10, 2026, now=datetime(2026, 10, 5, 12))
    assert report["dailyAverage"] == 10


@pytest.mark.parametrize(
    "params",
    [{}, {"month": 13, "year": 2024}, {"month": 0, "year": 2024}, {"month": 1, "year": 2019}, {"month": 1}],
)
async def test_monthly_report_rejects_bad_period(client, store, auth_header, params):
    user = store.add_user()
    r = await client.get("/api/expense-reports/monthly", params=params, headers=auth_header(user))
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid month or year"


async def test_monthly_report_non_numeric_month(client, store, auth_header):
    user = store.add_user()
    r = await client.get(
        "/api/expense-reports/monthly", params={"month": "feb", "year": 2024}, headers=auth_header(user)
    )
    assert r.status_code == 400
    assert r.json()["error"] == "VALIDATION_ERROR"


async def test_annual_report(client, store, auth_header):
    user = store.add_user()
    store.add_allowance(user.id, 1000, created_at=datetime(2024, 1, 5))
    _spend(store, user, 100, datetime(2024, 1, 10))
    _spend(store, user, 300, datetime(2024, 3, 10), category="Essentials")
    _spend(store, user, 50, datetime(2024, 7, 1), category="Extra")
    _spend(store, user, 70, datetime(2023, 12, 31))

    r = await client.get("/api/expense-reports/annual", params={"year": 2024}, headers=auth_header(user))

    assert r.status_code == 200
    body = r.json()
    assert body["summary"] == {
        "totalExpenses": 450,
        "totalAllowance": 1000,
        "totalSavings": 900,
        "averageMonthlySpending": 37.5,
    }
    assert len(body["monthlyData"]) == 12
    assert body["monthlyData"][0] == {"month": 1, "monthName": "Jan", "totalExpenses": 100}
    assert body["monthlyData"][1]["totalExpenses"] == 0
    assert body["insights"]["highestSpendingMonth"] == {"monthName": "March", "totalExpenses": 300}
    assert body["insights"]["lowestSpendingMonth"] == {"monthName": "July", "totalExpenses": 50}
    assert body["insights"]["totalMonthsTracked"] == 12
    assert body["insights"]["mostSpentCategory"] == "Essentials"


async def test_annual_report_current_year_stops_at_current_month(store):
    user = store.add_user()
    _spend(store, user, 20, datetime(2026, 2, 1))
    report = await report_service.annual_report(store, user.id, 2026, now=datetime(2026, 4, 15))
    assert [m["month"] for m in report["monthlyData"]] == [1, 2, 3, 4]
    assert report["summary"]["averageMonthlySpending"] == 5


async def test_annual_report_without_spending(store):
    user = store.add_user()
    report = await report_service.annual_report(store, user.id, 2024, now=datetime(2026, 1, 1))
    assert report["insights"]["highestSpendingMonth"] == {"monthName": "N/A", "totalExpenses": 0}
    assert report["insights"]["lowestSpendingMonth"] == {"monthName": "N/A", "totalExpenses": 0}
    assert report["insights"]["mostSpentCategory"] == "Allowance"


async def test_annual_report_rejects_bad_year(store):
    user = store.add_user()
    with pytest.raises(BadRequestError):
        await report_service.annual_report(store, user.id, 1999)


async def test_reports_require_token(client, store):
    r = await client.get("/api/expense-reports/annual", params={"year": 2024})
    assert r.status_code == 401
    assert store.opened == 0
