from beanie import PydanticObjectId
from fastapi import APIRouter, Depends

from pocketa.db.store import RecordStore
from pocketa.deps import get_current_user_id, get_store
from pocketa.services import stats as stats_service

router = APIRouter()


@router.get("")
async def get_stats(
    user_id: PydanticObjectId = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    """Current month's spending by category with budgets and what is left."""
    return await stats_service.monthly_stats(store, user_id)
