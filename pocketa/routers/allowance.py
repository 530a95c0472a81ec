from datetime import datetime

from beanie import PydanticObjectId
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from pocketa.db.store import RecordStore
from pocketa.deps import get_current_user_id, get_store
from pocketa.services import allowances as allowance_service
from pocketa.services import balance as balance_service
from pocketa.services.balance import ReconciliationResult

router = APIRouter()


class AllowanceCreate(BaseModel):
    amount: float = Field(gt=0)
    description: str | None = None
    receivedDate: datetime | None = None


def balance_out(result: ReconciliationResult) -> dict:
    return {
        "current": result.balance,
        "totalAllowances": result.total_credits,
        "totalExpenses": result.total_debits,
        "synced": result.synced,
    }


def snapshot_out(result: ReconciliationResult) -> dict:
    return {
        "currentBalance": result.current_balance,
        "lastAllowanceAmount": result.last_allowance_amount,
    }


@router.post("/sync-balance")
async def sync_balance(
    user_id: PydanticObjectId = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    """Recompute the balance from all allowances and transactions."""
    result = await balance_service.reconcile(store, user_id)
    return {
        "message": "Balance synced successfully",
        "balance": balance_out(result),
        "user": snapshot_out(result),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_allowance(
    body: AllowanceCreate,
    user_id: PydanticObjectId = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    record, result = await allowance_service.add_allowance(
        store, user_id, body.amount, body.description, body.receivedDate
    )
    return {
        "message": "Allowance added successfully",
        "allowance": allowance_service.allowance_out(record),
        "balance": balance_out(result),
        "user": snapshot_out(result),
    }


@router.get("/current")
async def current_allowance(
    user_id: PydanticObjectId = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    return await allowance_service.current_allowance(store, user_id)


@router.get("/history")
async def allowance_history(
    user_id: PydanticObjectId = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    """Newest allowances first."""
    return await allowance_service.allowance_history(store, user_id)
