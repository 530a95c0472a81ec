from beanie import PydanticObjectId
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from pocketa.db.store import RecordStore
from pocketa.deps import get_store, require_admin
from pocketa.services import balance as balance_service

router = APIRouter()


class BalanceOverrideRequest(BaseModel):
    balance: float
    reason: str = Field(min_length=1)


@router.post("/users/{user_id}/balance-override")
async def balance_override(
    user_id: PydanticObjectId,
    body: BalanceOverrideRequest,
    admin_id: PydanticObjectId = Depends(require_admin),
    store: RecordStore = Depends(get_store),
):
    """Admin: set a user's balance to a literal value. Audited; does not recompute."""
    result = await balance_service.force_set_balance(store, user_id, body.balance, admin_id, body.reason)
    return {
        "message": "Balance overridden",
        "before": result.previous_balance,
        "after": result.balance,
        "reconciled": False,
    }
