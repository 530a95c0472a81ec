"""Plain record types handed to services.

Services never see Beanie documents; the store converts at its boundary so
balance logic can run over any sequence of records.
"""

from datetime import datetime

from beanie import PydanticObjectId
from pydantic import BaseModel


class UserRecord(BaseModel):
    id: PydanticObjectId
    email: str
    name: str = ""
    password_hash: str = ""
    role: str = "user"
    current_balance: float = 0
    last_allowance_amount: float = 0
    setup_completed: bool = False
    created_at: datetime
    updated_at: datetime


class AllowanceRecord(BaseModel):
    id: PydanticObjectId | None = None
    user_id: PydanticObjectId
    amount: float
    description: str = "Allowance deposit"
    received_date: datetime
    created_at: datetime


class TransactionRecord(BaseModel):
    id: PydanticObjectId | None = None
    user_id: PydanticObjectId
    amount: float
    description: str
    category: str
    date: datetime
    created_at: datetime


class EssentialRecord(BaseModel):
    id: PydanticObjectId | None = None
    user_id: PydanticObjectId
    name: str
    amount: float
    due_date: int
    is_active: bool = True
    created_at: datetime
    updated_at: datetime
