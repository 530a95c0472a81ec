from datetime import datetime
from typing import Literal

from beanie import PydanticObjectId
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from pocketa.db.store import RecordStore
from pocketa.deps import get_current_user_id, get_store
from pocketa.routers.allowance import balance_out, snapshot_out
from pocketa.services import transactions as transaction_service

router = APIRouter()


class TransactionCreate(BaseModel):
    amount: float = Field(gt=0)
    description: str = Field(min_length=1)
    category: Literal["Essentials", "Allowance", "Extra"]
    date: datetime


@router.get("")
async def list_transactions(
    user_id: PydanticObjectId = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    """Return the user's transactions, newest first."""
    page = await transaction_service.list_transactions(store, user_id, limit, offset)
    return {
        "transactions": [transaction_service.transaction_out(t) for t in page.items],
        "count": len(page.items),
        "hasMore": page.has_more,
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_transaction(
    body: TransactionCreate,
    user_id: PydanticObjectId = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    record, result = await transaction_service.add_transaction(
        store, user_id, body.amount, body.description, body.category, body.date
    )
    return {
        "message": "Expense added successfully",
        "transaction": transaction_service.transaction_out(record),
        "balance": balance_out(result),
        "user": snapshot_out(result),
    }
