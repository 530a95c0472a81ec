from datetime import datetime

from beanie import Document, PydanticObjectId
from pydantic import Field


class Allowance(Document):
    """Append-only credit."""
    user_id: PydanticObjectId
    amount: float = Field(ge=0)
    description: str = "Allowance deposit"
    received_date: datetime = Field(default_factory=datetime.utcnow)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "allowances"
        indexes = [
            [("user_id", 1), ("created_at", -1)],
        ]
