from beanie import PydanticObjectId
from fastapi import APIRouter, Depends

from pocketa.db.store import RecordStore
from pocketa.deps import get_current_user_id, get_store
from pocketa.services import reports as report_service

router = APIRouter()


@router.get("/monthly")
async def monthly_report(
    month: int | None = None,
    year: int | None = None,
    user_id: PydanticObjectId = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    return await report_service.monthly_report(store, user_id, month, year)


@router.get("/annual")
async def annual_report(
    year: int | None = None,
    user_id: PydanticObjectId = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    return await report_service.annual_report(store, user_id, year)
