from datetime import datetime
from typing import Literal

from beanie import Document, PydanticObjectId
from pydantic import Field


class BalanceOverrideLog(Document):
    """One row per administrative balance override. Never written by reconciliation."""
    action: Literal["balance_override"] = "balance_override"
    actor_id: PydanticObjectId
    target_user_id: PydanticObjectId
    previous_balance: float
    new_balance: float
    reason: str
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "balance_override_logs"
        indexes = [
            [("target_user_id", 1), ("created_at", -1)],
            [("actor_id", 1), ("created_at", -1)],
        ]
