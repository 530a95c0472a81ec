"""Recurring monthly essentials and the first-run account setup.

Essentials are never hard-deleted: removal flips ``is_active`` so that past
reports can still name them.
"""

from datetime import datetime
from typing import Any, Iterable

from beanie import PydanticObjectId
from bson import ObjectId

from pocketa.core.exceptions import BadRequestError, NotFoundError
from pocketa.core.logging import get_logger
from pocketa.db.store import RecordStore
from pocketa.models.records import EssentialRecord
from pocketa.services.users import user_out

log = get_logger(__name__)


def essential_error(name: Any, amount: Any, due_date: Any) -> str | None:
    """Return the first problem with an essential's fields, or None if it is valid."""
    if not isinstance(name, str) or not name.strip():
        return "Essential name is required"
    if not isinstance(amount, (int, float)) or isinstance(amount, bool) or amount <= 0:
        return "Amount must be greater than 0"
    if not isinstance(due_date, int) or isinstance(due_date, bool) or not 1 <= due_date <= 31:
        return "Due date must be between 1 and 31"
    return None


def essential_out(record: EssentialRecord) -> dict:
    return {
        "id": str(record.id),
        "name": record.name,
        "amount": record.amount,
        "dueDate": record.due_date,
        "isActive": record.is_active,
        "createdAt": record.created_at.isoformat(),
    }


async def list_essentials(store: RecordStore, user_id: PydanticObjectId) -> list[EssentialRecord]:
    return list(await store.list_essentials(user_id))


async def add_essential(
    store: RecordStore, user_id: PydanticObjectId, name: Any, amount: Any, due_date: Any
) -> EssentialRecord:
    error = essential_error(name, amount, due_date)
    if error:
        raise BadRequestError(error)
    if await store.get_user(user_id) is None:
        raise NotFoundError("User not found")
    record = await store.insert_essential(user_id, name.strip(), float(amount), due_date)
    log.info("essential_added", user_id=str(user_id), essential_id=str(record.id), amount=record.amount)
    return record


async def remove_essential(store: RecordStore, user_id: PydanticObjectId, essential_id: str | None) -> None:
    if not essential_id:
        raise BadRequestError("Essential ID is required")
    if not ObjectId.is_valid(essential_id):
        raise BadRequestError("Invalid essential ID")
    if not await store.deactivate_essential(user_id, PydanticObjectId(essential_id)):
        raise NotFoundError("Essential not found")
    log.info("essential_removed", user_id=str(user_id), essential_id=essential_id)


async def get_settings_view(store: RecordStore, user_id: PydanticObjectId) -> dict:
    user = await store.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    essentials = await store.list_essentials(user_id)
    return {"user": user_out(user), "essentials": [essential_out(e) for e in essentials]}


async def complete_setup(store: RecordStore, user_id: PydanticObjectId, entries: Iterable[dict]) -> dict:
    """Mark setup done and replace the active essentials with ``entries``.

    Entries that fail validation are skipped rather than failing the whole
    setup; the count of skipped entries is returned alongside the result.
    """
    if await store.get_user(user_id) is None:
        raise NotFoundError("User not found")
    entries = list(entries)
    valid = [e for e in entries if essential_error(e.get("name"), e.get("amount"), e.get("dueDate")) is None]

    await store.mark_setup_completed(user_id, datetime.utcnow())
    await store.deactivate_essentials(user_id)
    for e in valid:
        await store.insert_essential(user_id, e["name"].strip(), float(e["amount"]), e["dueDate"])
    log.info("setup_completed", user_id=str(user_id), essentials=len(valid), skipped=len(entries) - len(valid))

    view = await get_settings_view(store, user_id)
    view["skipped"] = len(entries) - len(valid)
    return view
