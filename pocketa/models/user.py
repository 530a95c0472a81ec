from datetime import datetime
from typing import Literal

from beanie import Document, Indexed
from pydantic import Field


class User(Document):
    email: Indexed(str, unique=True)
    name: str = ""
    password_hash: str = ""
    role: Literal["user", "admin"] = "user"
    # Balance snapshot; written only by reconciliation or the admin override
    current_balance: float = 0
    last_allowance_amount: float = 0
    setup_completed: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "users"
