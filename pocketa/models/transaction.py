from datetime import datetime
from typing import Literal

from beanie import Document, PydanticObjectId
from pydantic import Field

CATEGORIES = ("Essentials", "Allowance", "Extra")


class Transaction(Document):
    """Append-only debit."""
    user_id: PydanticObjectId
    amount: float  # positive = expense
    description: str
    category: Literal["Essentials", "Allowance", "Extra"]
    date: datetime
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "transactions"
        indexes = [
            [("user_id", 1), ("created_at", -1)],
            [("user_id", 1), ("date", -1)],
        ]
