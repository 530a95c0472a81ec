"""Allowance deposits and read-only allowance views."""

from datetime import datetime

from beanie import PydanticObjectId

from pocketa.core.config import get_settings
from pocketa.core.exceptions import NotFoundError
from pocketa.core.logging import get_logger
from pocketa.db.store import RecordStore
from pocketa.models.records import AllowanceRecord
from pocketa.services import balance as balance_service
from pocketa.services.balance import ReconciliationResult

log = get_logger(__name__)


def start_of_month(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


async def add_allowance(
    store: RecordStore,
    user_id: PydanticObjectId,
    amount: float,
    description: str | None = None,
    received_date: datetime | None = None,
) -> tuple[AllowanceRecord, ReconciliationResult]:
    """Append a credit, remember it as the last allowance, then refresh the snapshot."""
    if await store.get_user(user_id) is None:
        raise NotFoundError("User not found")
    now = datetime.utcnow()
    record = await store.insert_allowance(
        user_id,
        amount,
        (description or "").strip() or "Allowance deposit",
        received_date or now,
    )
    await store.set_last_allowance_amount(user_id, amount, now)
    log.info("allowance_added", user_id=str(user_id), allowance_id=str(record.id), amount=amount)
    result = await balance_service.reconcile(store, user_id)
    return record, result


async def current_allowance(store: RecordStore, user_id: PydanticObjectId) -> dict:
    """Snapshot values plus this calendar month's deposits and spending.

    ``month.spent`` covers every category; ``allowanceSpent`` and
    ``currentTopup.spent`` only count expenses filed under Allowance.
    """
    user = await store.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    since = start_of_month(datetime.utcnow())
    deposits = await store.list_allowances(user_id, since=since)
    spending = await store.list_transactions(user_id, since=since)
    monthly_deposits = sum(a.amount for a in deposits)
    monthly_spent = sum(t.amount for t in spending)
    allowance_spent = sum(t.amount for t in spending if t.category == "Allowance")
    return {
        "currentBalance": user.current_balance,
        "lastAllowanceAmount": user.last_allowance_amount,
        "hasActiveAllowance": monthly_deposits > 0,
        "allowanceSpent": allowance_spent,
        "currentTopup": {
            "amount": monthly_deposits,
            "spent": allowance_spent,
            # display value; currentBalance above stays signed
            "remaining": max(0.0, user.current_balance),
        },
        "month": {
            "start": since.isoformat(),
            "deposits": monthly_deposits,
            "spent": monthly_spent,
            "depositCount": len(deposits),
            "transactionCount": len(spending),
        },
    }


async def allowance_history(store: RecordStore, user_id: PydanticObjectId) -> dict:
    limit = get_settings().allowance_history_limit
    records = await store.recent_allowances(user_id, limit)
    return {
        "history": [allowance_out(r) for r in records],
        "totalAllowances": sum(r.amount for r in records),
        "count": len(records),
    }


def allowance_out(record: AllowanceRecord) -> dict:
    return {
        "id": str(record.id),
        "amount": record.amount,
        "description": record.description,
        "receivedDate": record.received_date.isoformat(),
        "createdAt": record.created_at.isoformat(),
    }
