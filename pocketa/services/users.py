from pocketa.core.exceptions import ConflictError, UnauthorizedError
from pocketa.core.logging import get_logger
from pocketa.core.security import check_password, create_access_token, hash_password
from pocketa.db.store import RecordStore
from pocketa.models.records import UserRecord

log = get_logger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def register_user(store: RecordStore, email: str, password: str, name: str = "") -> UserRecord:
    email = normalize_email(email)
    if await store.get_user_by_email(email):
        raise ConflictError("User already exists")
    user = await store.create_user(email, name.strip(), hash_password(password))
    log.info("user_registered", user_id=str(user.id))
    return user


async def authenticate(store: RecordStore, email: str, password: str) -> UserRecord:
    """Return the user for valid credentials; one error for unknown email and bad password alike."""
    user = await store.get_user_by_email(normalize_email(email))
    if not user or not check_password(password, user.password_hash):
        raise UnauthorizedError("Invalid credentials")
    log.info("user_login", user_id=str(user.id))
    return user


def token_for_user(user: UserRecord) -> str:
    return create_access_token(user.id, user.email)


def user_out(user: UserRecord) -> dict:
    return {
        "id": str(user.id),
        "name": user.name,
        "email": user.email,
        "currentBalance": user.current_balance,
        "lastAllowanceAmount": user.last_allowance_amount,
        "setupCompleted": user.setup_completed,
    }
