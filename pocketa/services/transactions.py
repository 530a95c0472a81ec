"""Expense records."""

from datetime import datetime

from beanie import PydanticObjectId

from pocketa.core.config import get_settings
from pocketa.core.exceptions import NotFoundError
from pocketa.core.logging import get_logger
from pocketa.core.pagination import Page, paginate
from pocketa.db.store import RecordStore
from pocketa.models.records import TransactionRecord
from pocketa.services import balance as balance_service
from pocketa.services.balance import ReconciliationResult

log = get_logger(__name__)


async def add_transaction(
    store: RecordStore,
    user_id: PydanticObjectId,
    amount: float,
    description: str,
    category: str,
    date: datetime,
) -> tuple[TransactionRecord, ReconciliationResult]:
    """Append a debit and refresh the balance snapshot from history."""
    if await store.get_user(user_id) is None:
        raise NotFoundError("User not found")
    record = await store.insert_transaction(user_id, amount, description.strip(), category, date)
    log.info(
        "transaction_added",
        user_id=str(user_id),
        transaction_id=str(record.id),
        amount=amount,
        category=category,
    )
    result = await balance_service.reconcile(store, user_id)
    return record, result


async def list_transactions(
    store: RecordStore, user_id: PydanticObjectId, limit: int, offset: int
) -> Page[TransactionRecord]:
    """Newest first by insertion time."""
    limit, offset = paginate(limit, offset, max_limit=get_settings().transactions_page_max)
    items = await store.page_transactions(user_id, limit, offset)
    return Page[TransactionRecord].from_items(items, limit, offset)


def transaction_out(record: TransactionRecord) -> dict:
    return {
        "id": str(record.id),
        "amount": record.amount,
        "description": record.description,
        "category": record.category,
        "date": record.date.isoformat(),
        "createdAt": record.created_at.isoformat(),
    }
