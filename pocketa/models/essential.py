from datetime import datetime

from beanie import Document, PydanticObjectId
from pydantic import Field


class Essential(Document):
    """Recurring monthly expense the user budgets for, e.g. rent due on the 5th."""
    user_id: PydanticObjectId
    name: str
    amount: float = Field(gt=0)
    due_date: int = Field(ge=1, le=31)  # day of month
    is_active: bool = True  # removal is a soft delete
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "essentials"
        indexes = [
            [("user_id", 1), ("is_active", 1)],
        ]
