from beanie import PydanticObjectId
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from pocketa.db.store import RecordStore
from pocketa.deps import get_current_user_id, get_store
from pocketa.services import essentials as essential_service

router = APIRouter()


class EssentialIn(BaseModel):
    # range checks live in the service so the client gets a specific message
    name: str | None = None
    amount: float | None = None
    dueDate: int | None = None


class SetupRequest(BaseModel):
    essentials: list[EssentialIn] = Field(default_factory=list)


@router.get("/essentials")
async def list_essentials(
    user_id: PydanticObjectId = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    records = await essential_service.list_essentials(store, user_id)
    return [essential_service.essential_out(r) for r in records]


@router.post("/essentials", status_code=status.HTTP_201_CREATED)
async def create_essential(
    body: EssentialIn,
    user_id: PydanticObjectId = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    record = await essential_service.add_essential(store, user_id, body.name, body.amount, body.dueDate)
    remaining = await essential_service.list_essentials(store, user_id)
    return {
        "message": "Essential added successfully",
        "essential": essential_service.essential_out(record),
        "allEssentials": [essential_service.essential_out(r) for r in remaining],
    }


@router.delete("/essentials")
async def delete_essential(
    user_id: PydanticObjectId = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
    essential_id: str | None = Query(default=None, alias="id"),
):
    """Soft delete: the essential stops counting toward budgets."""
    await essential_service.remove_essential(store, user_id, essential_id)
    remaining = await essential_service.list_essentials(store, user_id)
    return {
        "message": "Essential deleted successfully",
        "allEssentials": [essential_service.essential_out(r) for r in remaining],
    }


@router.get("/settings")
async def get_settings(
    user_id: PydanticObjectId = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    return await essential_service.get_settings_view(store, user_id)


@router.post("/settings")
async def complete_setup(
    body: SetupRequest,
    user_id: PydanticObjectId = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
):
    view = await essential_service.complete_setup(store, user_id, [e.model_dump() for e in body.essentials])
    return {"message": "Settings updated successfully", **view}
