"""Balance snapshot maintenance.

Two separate write paths touch ``User.current_balance``:

- ``reconcile`` recomputes the snapshot from the full allowance and
  transaction history. This is the normal path and is idempotent.
- ``force_set_balance`` is an audited administrative override that writes a
  literal value. It never consults the history and must not be used in
  place of ``reconcile``.
"""

from datetime import datetime
from typing import Iterable

from beanie import PydanticObjectId
from pydantic import BaseModel

from pocketa.core.exceptions import BadRequestError, NotFoundError
from pocketa.core.logging import get_logger
from pocketa.db.store import RecordStore
from pocketa.models.records import AllowanceRecord, TransactionRecord

log = get_logger(__name__)


class ReconciliationResult(BaseModel):
    balance: float
    total_credits: float
    total_debits: float
    synced: bool = True
    current_balance: float
    last_allowance_amount: float


class OverrideResult(BaseModel):
    previous_balance: float
    balance: float


def compute_balance(
    allowances: Iterable[AllowanceRecord],
    transactions: Iterable[TransactionRecord],
) -> tuple[float, float, float]:
    """Return (balance, total_credits, total_debits). Negative balances are kept."""
    total_credits = sum(a.amount for a in allowances)
    total_debits = sum(t.amount for t in transactions)
    return total_credits - total_debits, total_credits, total_debits


async def reconcile(store: RecordStore, user_id: PydanticObjectId) -> ReconciliationResult:
    """Recompute the user's balance from their records and persist it.

    Exactly one write per call. Overlapping calls for the same user are not
    serialized; the last write wins.
    """
    allowances = await store.list_allowances(user_id)
    transactions = await store.list_transactions(user_id)
    balance, total_credits, total_debits = compute_balance(allowances, transactions)

    await store.update_balance(user_id, balance, datetime.utcnow())

    user = await store.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")

    log.info(
        "balance_reconciled",
        user_id=str(user_id),
        balance=balance,
        total_credits=total_credits,
        total_debits=total_debits,
        allowances=len(allowances),
        transactions=len(transactions),
    )
    return ReconciliationResult(
        balance=balance,
        total_credits=total_credits,
        total_debits=total_debits,
        current_balance=user.current_balance,
        last_allowance_amount=user.last_allowance_amount,
    )


async def force_set_balance(
    store: RecordStore,
    user_id: PydanticObjectId,
    amount: float,
    actor_id: PydanticObjectId,
    reason: str,
) -> OverrideResult:
    """Administrative override: set the snapshot to ``amount`` and audit it."""
    reason = (reason or "").strip()
    if not reason:
        raise BadRequestError("A reason is required for a balance override")
    user = await store.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")

    await store.update_balance(user_id, amount, datetime.utcnow())
    await store.append_override_audit(actor_id, user_id, user.current_balance, amount, reason)
    log.warning(
        "balance_override",
        user_id=str(user_id),
        actor_id=str(actor_id),
        previous_balance=user.current_balance,
        new_balance=amount,
    )
    return OverrideResult(previous_balance=user.current_balance, balance=amount)
