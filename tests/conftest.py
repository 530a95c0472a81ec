import os
from copy import deepcopy
from datetime import datetime
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from beanie import PydanticObjectId
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")
os.environ.setdefault("MONGODB_DB_NAME", "pocketa_test")
os.environ.setdefault("TOKEN_SECRET", "test-secret-key-min-32-characters-long")

from pocketa.core.exceptions import ConflictError, NotFoundError  # noqa: E402
from pocketa.models.records import AllowanceRecord, EssentialRecord, TransactionRecord, UserRecord  # noqa: E402


def _in_range(value: datetime, since: datetime | None, until: datetime | None) -> bool:
    return (since is None or value >= since) and (until is None or value < until)


class InMemoryRecordStore:
    """RecordStore over dicts and lists. Every call is appended to ``calls``."""

    def __init__(self):
        self.users: dict[PydanticObjectId, UserRecord] = {}
        self.allowances: list[AllowanceRecord] = []
        self.transactions: list[TransactionRecord] = []
        self.essentials: list[EssentialRecord] = []
        self.audit: list[dict[str, Any]] = []
        self.calls: list[tuple[str, Any]] = []
        self.opened = 0
        self.released = 0

    # seeding helpers, not part of the store interface
    def add_user(self, email: str = "user@example.com", role: str = "user", **fields) -> UserRecord:
        now = datetime.utcnow()
        user = UserRecord(id=PydanticObjectId(), email=email, role=role, created_at=now, updated_at=now, **fields)
        self.users[user.id] = user
        return user

    def add_allowance(self, user_id: PydanticObjectId, amount: float, created_at: datetime | None = None) -> None:
        now = created_at or datetime.utcnow()
        self.allowances.append(
            AllowanceRecord(id=PydanticObjectId(), user_id=user_id, amount=amount, received_date=now, created_at=now)
        )

    def add_transaction(
        self,
        user_id: PydanticObjectId,
        amount: float,
        category: str = "Allowance",
        created_at: datetime | None = None,
        description: str = "expense",
        date: datetime | None = None,
    ) -> None:
        now = created_at or datetime.utcnow()
        self.transactions.append(
            TransactionRecord(
                id=PydanticObjectId(),
                user_id=user_id,
                amount=amount,
                description=description,
                category=category,
                date=date or now,
                created_at=now,
            )
        )

    def add_essential(
        self, user_id: PydanticObjectId, name: str, amount: float, due_date: int = 1, is_active: bool = True
    ) -> EssentialRecord:
        now = datetime.utcnow()
        record = EssentialRecord(
            id=PydanticObjectId(),
            user_id=user_id,
            name=name,
            amount=amount,
            due_date=due_date,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )
        self.essentials.append(record)
        return record

    def touched_users(self) -> set[PydanticObjectId]:
        return {arg for _, arg in self.calls if isinstance(arg, PydanticObjectId)}

    def _update_user(self, user_id, **fields) -> None:
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        self.users[user_id] = user.model_copy(update=fields)

    # RecordStore
    async def list_allowances(self, user_id, since=None, until=None):
        self.calls.append(("list_allowances", user_id))
        return [deepcopy(a) for a in self.allowances if a.user_id == user_id and _in_range(a.created_at, since, until)]

    async def list_transactions(self, user_id, since=None, until=None):
        self.calls.append(("list_transactions", user_id))
        return [
            deepcopy(t) for t in self.transactions if t.user_id == user_id and _in_range(t.created_at, since, until)
        ]

    async def transactions_dated(self, user_id, start, end):
        self.calls.append(("transactions_dated", user_id))
        return [deepcopy(t) for t in self.transactions if t.user_id == user_id and _in_range(t.date, start, end)]

    async def recent_allowances(self, user_id, limit):
        self.calls.append(("recent_allowances", user_id))
        mine = [a for a in self.allowances if a.user_id == user_id]
        mine.sort(key=lambda a: a.created_at, reverse=True)
        return deepcopy(mine[:limit])

    async def page_transactions(self, user_id, limit, offset):
        self.calls.append(("page_transactions", user_id))
        mine = [t for t in self.transactions if t.user_id == user_id]
        mine.sort(key=lambda t: t.created_at, reverse=True)
        return deepcopy(mine[offset:offset + limit])

    async def get_user(self, user_id):
        self.calls.append(("get_user", user_id))
        user = self.users.get(user_id)
        return deepcopy(user) if user else None

    async def get_user_by_email(self, email):
        self.calls.append(("get_user_by_email", email))
        for user in self.users.values():
            if user.email == email:
                return deepcopy(user)
        return None

    async def create_user(self, email, name, password_hash):
        self.calls.append(("create_user", email))
        if any(u.email == email for u in self.users.values()):
            raise ConflictError("User already exists")
        return deepcopy(self.add_user(email=email, name=name, password_hash=password_hash))

    async def update_balance(self, user_id, new_balance, updated_at):
        self.calls.append(("update_balance", user_id))
        self._update_user(user_id, current_balance=new_balance, updated_at=updated_at)

    async def set_last_allowance_amount(self, user_id, amount, updated_at):
        self.calls.append(("set_last_allowance_amount", user_id))
        self._update_user(user_id, last_allowance_amount=amount, updated_at=updated_at)

    async def mark_setup_completed(self, user_id, updated_at):
        self.calls.append(("mark_setup_completed", user_id))
        self._update_user(user_id, setup_completed=True, updated_at=updated_at)

    async def insert_allowance(self, user_id, amount, description, received_date):
        self.calls.append(("insert_allowance", user_id))
        record = AllowanceRecord(
            id=PydanticObjectId(),
            user_id=user_id,
            amount=amount,
            description=description,
            received_date=received_date,
            created_at=datetime.utcnow(),
        )
        self.allowances.append(record)
        return deepcopy(record)

    async def insert_transaction(self, user_id, amount, description, category, date):
        self.calls.append(("insert_transaction", user_id))
        record = TransactionRecord(
            id=PydanticObjectId(),
            user_id=user_id,
            amount=amount,
            description=description,
            category=category,
            date=date,
            created_at=datetime.utcnow(),
        )
        self.transactions.append(record)
        return deepcopy(record)

    async def list_essentials(self, user_id):
        self.calls.append(("list_essentials", user_id))
        return [deepcopy(e) for e in self.essentials if e.user_id == user_id and e.is_active]

    async def insert_essential(self, user_id, name, amount, due_date):
        self.calls.append(("insert_essential", user_id))
        return deepcopy(self.add_essential(user_id, name, amount, due_date))

    async def deactivate_essential(self, user_id, essential_id):
        self.calls.append(("deactivate_essential", user_id))
        for i, e in enumerate(self.essentials):
            if e.id == essential_id and e.user_id == user_id and e.is_active:
                self.essentials[i] = e.model_copy(update={"is_active": False, "updated_at": datetime.utcnow()})
                return True
        return False

    async def deactivate_essentials(self, user_id):
        self.calls.append(("deactivate_essentials", user_id))
        for i, e in enumerate(self.essentials):
            if e.user_id == user_id and e.is_active:
                self.essentials[i] = e.model_copy(update={"is_active": False, "updated_at": datetime.utcnow()})

    async def append_override_audit(self, actor_id, target_user_id, previous_balance, new_balance, reason):
        self.calls.append(("append_override_audit", target_user_id))
        self.audit.append(
            {
                "actor_id": actor_id,
                "target_user_id": target_user_id,
                "previous_balance": previous_balance,
                "new_balance": new_balance,
                "reason": reason,
            }
        )


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def auth_header():
    from pocketa.core.security import create_access_token

    def _header(user: UserRecord) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.email)}"}

    return _header


@pytest_asyncio.fixture
async def client(store: InMemoryRecordStore) -> AsyncGenerator[AsyncClient, None]:
    from pocketa.deps import get_store
    from pocketa.main import app

    async def _override_store():
        store.opened += 1
        try:
            yield store
        finally:
            store.released += 1

    app.dependency_overrides[get_store] = _override_store
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
