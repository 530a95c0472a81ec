from datetime import datetime, timedelta

import pytest

from pocketa.services.allowances import start_of_month

pytestmark = pytest.mark.asyncio


async def test_stats_breakdown_and_budgets(client, store, auth_header):
    user = store.add_user(current_balance=120, last_allowance_amount=200)
    store.add_essential(user.id, "Rent", 100)
    store.add_essential(user.id, "Phone", 30)
    store.add_essential(user.id, "Old gym", 50, is_active=False)
    store.add_transaction(user.id, 80, category="Allowance")
    store.add_transaction(user.id, 150, category="Essentials")
    store.add_transaction(user.id, 15, category="Extra")
    last_month = start_of_month(datetime.utcnow()) - timedelta(days=1)
    store.add_transaction(user.id, 999, category="Allowance", created_at=last_month)

    r = await client.get("/api/stats", headers=auth_header(user))

    assert r.status_code == 200
    body = r.json()
    assert body["categoryBreakdown"] == {"Essentials": 150, "Allowance": 80, "Extra": 15}
    assert body["allowance"] == {"spent": 80, "budget": 200, "remaining": 120}
    # overspent essentials: remaining bottoms out at zero
    assert body["essentials"] == {"spent": 150, "budget": 130, "remaining": 0}
    assert body["extra"] == {"spent": 15, "budget": 0, "remaining": 0}
    assert body["totalSpentThisMonth"] == 245
    assert body["totalEssentials"] == 130
    assert body["essentialsCount"] == 2
    assert body["currentBalance"] == 120
    assert body["currentPeriod"]["type"] == "monthly"


async def test_stats_empty_month(client, store, auth_header):
    user = store.add_user()
    r = await client.get("/api/stats", headers=auth_header(user))
    body = r.json()
    assert body["totalSpentThisMonth"] == 0
    assert body["categoryBreakdown"] == {"Essentials": 0, "Allowance": 0, "Extra": 0}


async def test_stats_does_not_write(client, store, auth_header):
    user = store.add_user()
    await client.get("/api/stats", headers=auth_header(user))
    assert not any(name.startswith(("update_", "insert_", "set_")) for name, _ in store.calls)


async def test_stats_requires_token(client, store):
    r = await client.get("/api/stats")
    assert r.status_code == 401
    assert store.opened == 0


async def test_stats_wrong_verb(client, store, auth_header):
    user = store.add_user()
    r = await client.post("/api/stats", headers=auth_header(user))
    assert r.status_code == 405
