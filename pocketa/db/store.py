"""Record store: the only place that talks to MongoDB.

``RecordStore`` is what services depend on. ``BeanieRecordStore`` implements it
on Beanie documents, bound to one PyMongo client session per request.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Protocol, Sequence

from beanie import PydanticObjectId
from beanie.operators import Set
from pymongo.asynchronous.client_session import AsyncClientSession
from pymongo.errors import DuplicateKeyError, PyMongoError

from pocketa.core.exceptions import ConflictError, NotFoundError, StoreUnavailableError
from pocketa.models.allowance import Allowance
from pocketa.models.audit_log import BalanceOverrideLog
from pocketa.models.essential import Essential
from pocketa.models.records import AllowanceRecord, EssentialRecord, TransactionRecord, UserRecord
from pocketa.models.transaction import Transaction
from pocketa.models.user import User


class RecordStore(Protocol):
    async def list_allowances(
        self, user_id: PydanticObjectId, since: datetime | None = None, until: datetime | None = None
    ) -> Sequence[AllowanceRecord]: ...

    async def list_transactions(
        self, user_id: PydanticObjectId, since: datetime | None = None, until: datetime | None = None
    ) -> Sequence[TransactionRecord]: ...

    async def transactions_dated(
        self, user_id: PydanticObjectId, start: datetime, end: datetime
    ) -> Sequence[TransactionRecord]: ...

    async def recent_allowances(self, user_id: PydanticObjectId, limit: int) -> Sequence[AllowanceRecord]: ...

    async def page_transactions(
        self, user_id: PydanticObjectId, limit: int, offset: int
    ) -> Sequence[TransactionRecord]: ...

    async def get_user(self, user_id: PydanticObjectId) -> UserRecord | None: ...

    async def get_user_by_email(self, email: str) -> UserRecord | None: ...

    async def create_user(self, email: str, name: str, password_hash: str) -> UserRecord: ...

    async def update_balance(self, user_id: PydanticObjectId, new_balance: float, updated_at: datetime) -> None: ...

    async def set_last_allowance_amount(
        self, user_id: PydanticObjectId, amount: float, updated_at: datetime
    ) -> None: ...

    async def mark_setup_completed(self, user_id: PydanticObjectId, updated_at: datetime) -> None: ...

    async def insert_allowance(
        self, user_id: PydanticObjectId, amount: float, description: str, received_date: datetime
    ) -> AllowanceRecord: ...

    async def insert_transaction(
        self, user_id: PydanticObjectId, amount: float, description: str, category: str, date: datetime
    ) -> TransactionRecord: ...

    async def list_essentials(self, user_id: PydanticObjectId) -> Sequence[EssentialRecord]: ...

    async def insert_essential(
        self, user_id: PydanticObjectId, name: str, amount: float, due_date: int
    ) -> EssentialRecord: ...

    async def deactivate_essential(self, user_id: PydanticObjectId, essential_id: PydanticObjectId) -> bool: ...

    async def deactivate_essentials(self, user_id: PydanticObjectId) -> None: ...

    async def append_override_audit(
        self,
        actor_id: PydanticObjectId,
        target_user_id: PydanticObjectId,
        previous_balance: float,
        new_balance: float,
        reason: str,
    ) -> None: ...


@contextmanager
def _store_faults() -> Iterator[None]:
    """Re-raise driver errors as StoreUnavailableError, keeping the cause for logs."""
    try:
        yield
    except PyMongoError as e:
        raise StoreUnavailableError() from e


class BeanieRecordStore:
    def __init__(self, session: AsyncClientSession | None = None):
        self.session = session

    async def list_allowances(
        self, user_id: PydanticObjectId, since: datetime | None = None, until: datetime | None = None
    ) -> list[AllowanceRecord]:
        filters = [Allowance.user_id == user_id]
        if since is not None:
            filters.append(Allowance.created_at >= since)
        if until is not None:
            filters.append(Allowance.created_at < until)
        with _store_faults():
            docs = await Allowance.find(*filters, session=self.session).to_list()
        return [AllowanceRecord.model_validate(d.model_dump()) for d in docs]

    async def list_transactions(
        self, user_id: PydanticObjectId, since: datetime | None = None, until: datetime | None = None
    ) -> list[TransactionRecord]:
        filters = [Transaction.user_id == user_id]
        if since is not None:
            filters.append(Transaction.created_at >= since)
        if until is not None:
            filters.append(Transaction.created_at < until)
        with _store_faults():
            docs = await Transaction.find(*filters, session=self.session).to_list()
        return [TransactionRecord.model_validate(d.model_dump()) for d in docs]

    async def transactions_dated(
        self, user_id: PydanticObjectId, start: datetime, end: datetime
    ) -> list[TransactionRecord]:
        """Transactions whose spend ``date`` (not insert time) is in [start, end)."""
        with _store_faults():
            docs = await Transaction.find(
                Transaction.user_id == user_id,
                Transaction.date >= start,
                Transaction.date < end,
                session=self.session,
            ).to_list()
        return [TransactionRecord.model_validate(d.model_dump()) for d in docs]

    async def recent_allowances(self, user_id: PydanticObjectId, limit: int) -> list[AllowanceRecord]:
        with _store_faults():
            docs = (
                await Allowance.find(Allowance.user_id == user_id, session=self.session)
                .sort(-Allowance.created_at)
                .limit(limit)
                .to_list()
            )
        return [AllowanceRecord.model_validate(d.model_dump()) for d in docs]

    async def page_transactions(
        self, user_id: PydanticObjectId, limit: int, offset: int
    ) -> list[TransactionRecord]:
        with _store_faults():
            docs = (
                await Transaction.find(Transaction.user_id == user_id, session=self.session)
                .sort(-Transaction.created_at)
                .skip(offset)
                .limit(limit)
                .to_list()
            )
        return [TransactionRecord.model_validate(d.model_dump()) for d in docs]

    async def get_user(self, user_id: PydanticObjectId) -> UserRecord | None:
        with _store_faults():
            user = await User.get(user_id, session=self.session)
        return UserRecord.model_validate(user.model_dump()) if user else None

    async def get_user_by_email(self, email: str) -> UserRecord | None:
        with _store_faults():
            user = await User.find_one(User.email == email, session=self.session)
        return UserRecord.model_validate(user.model_dump()) if user else None

    async def create_user(self, email: str, name: str, password_hash: str) -> UserRecord:
        user = User(email=email, name=name, password_hash=password_hash)
        with _store_faults():
            try:
                await user.insert(session=self.session)
            except DuplicateKeyError:
                raise ConflictError("User already exists") from None
        return UserRecord.model_validate(user.model_dump())

    async def _set_user_fields(self, user_id: PydanticObjectId, fields: dict) -> None:
        """Single-document $set on the user; NotFoundError when nothing matched."""
        with _store_faults():
            result = await User.find_one({"_id": user_id}, session=self.session).update(
                Set(fields), session=self.session
            )
        if result is None or result.matched_count == 0:
            raise NotFoundError("User not found")

    async def update_balance(self, user_id: PydanticObjectId, new_balance: float, updated_at: datetime) -> None:
        await self._set_user_fields(user_id, {"current_balance": new_balance, "updated_at": updated_at})

    async def set_last_allowance_amount(
        self, user_id: PydanticObjectId, amount: float, updated_at: datetime
    ) -> None:
        await self._set_user_fields(user_id, {"last_allowance_amount": amount, "updated_at": updated_at})

    async def mark_setup_completed(self, user_id: PydanticObjectId, updated_at: datetime) -> None:
        await self._set_user_fields(user_id, {"setup_completed": True, "updated_at": updated_at})

    async def insert_allowance(
        self, user_id: PydanticObjectId, amount: float, description: str, received_date: datetime
    ) -> AllowanceRecord:
        doc = Allowance(user_id=user_id, amount=amount, description=description, received_date=received_date)
        with _store_faults():
            await doc.insert(session=self.session)
        return AllowanceRecord.model_validate(doc.model_dump())

    async def insert_transaction(
        self, user_id: PydanticObjectId, amount: float, description: str, category: str, date: datetime
    ) -> TransactionRecord:
        doc = Transaction(user_id=user_id, amount=amount, description=description, category=category, date=date)
        with _store_faults():
            await doc.insert(session=self.session)
        return TransactionRecord.model_validate(doc.model_dump())

    async def list_essentials(self, user_id: PydanticObjectId) -> list[EssentialRecord]:
        with _store_faults():
            docs = await Essential.find(
                Essential.user_id == user_id,
                Essential.is_active == True,  # noqa: E712
                session=self.session,
            ).to_list()
        return [EssentialRecord.model_validate(d.model_dump()) for d in docs]

    async def insert_essential(
        self, user_id: PydanticObjectId, name: str, amount: float, due_date: int
    ) -> EssentialRecord:
        doc = Essential(user_id=user_id, name=name, amount=amount, due_date=due_date)
        with _store_faults():
            await doc.insert(session=self.session)
        return EssentialRecord.model_validate(doc.model_dump())

    async def deactivate_essential(self, user_id: PydanticObjectId, essential_id: PydanticObjectId) -> bool:
        with _store_faults():
            result = await Essential.find_one(
                {"_id": essential_id, "user_id": user_id, "is_active": True}, session=self.session
            ).update(Set({"is_active": False, "updated_at": datetime.utcnow()}), session=self.session)
        return bool(result and result.matched_count)

    async def deactivate_essentials(self, user_id: PydanticObjectId) -> None:
        with _store_faults():
            await Essential.find({"user_id": user_id, "is_active": True}, session=self.session).update(
                Set({"is_active": False, "updated_at": datetime.utcnow()}), session=self.session
            )

    async def append_override_audit(
        self,
        actor_id: PydanticObjectId,
        target_user_id: PydanticObjectId,
        previous_balance: float,
        new_balance: float,
        reason: str,
    ) -> None:
        entry = BalanceOverrideLog(
            actor_id=actor_id,
            target_user_id=target_user_id,
            previous_balance=previous_balance,
            new_balance=new_balance,
            reason=reason,
        )
        with _store_faults():
            await entry.insert(session=self.session)
