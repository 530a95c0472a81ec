from contextlib import asynccontextmanager
from typing import AsyncIterator

import certifi
from beanie import init_beanie
from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from pocketa.core.config import get_settings
from pocketa.core.exceptions import StoreUnavailableError
from pocketa.core.logging import get_logger
from pocketa.db.store import BeanieRecordStore
from pocketa.models.allowance import Allowance
from pocketa.models.audit_log import BalanceOverrideLog
from pocketa.models.essential import Essential
from pocketa.models.transaction import Transaction
from pocketa.models.user import User

log = get_logger(__name__)

DOCUMENT_MODELS = [
    User,
    Allowance,
    Transaction,
    Essential,
    BalanceOverrideLog,
]

_client: AsyncMongoClient | None = None


def _use_tls(uri: str) -> bool:
    """True if URI uses TLS (Atlas or explicit tls=true). Avoids TLS for plain mongodb:// in CI."""
    return "mongodb+srv://" in uri or "tls=true" in uri.lower()


async def init_db() -> None:
    global _client
    settings = get_settings()
    kwargs = {
        "serverSelectionTimeoutMS": settings.mongodb_server_selection_timeout_ms,
        "socketTimeoutMS": settings.mongodb_socket_timeout_ms,
        "minPoolSize": settings.mongodb_min_pool_size,
        "maxPoolSize": settings.mongodb_max_pool_size,
    }
    # Atlas in Docker: tlsCAFile + tlsDisableOCSPEndpointCheck avoid TLSV1_ALERT_INTERNAL_ERROR
    if _use_tls(settings.mongodb_uri):
        kwargs["tlsCAFile"] = certifi.where()
        kwargs["tlsDisableOCSPEndpointCheck"] = True
    client = AsyncMongoClient(settings.mongodb_uri, **kwargs)
    database = client[settings.mongodb_db_name]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    _client = client
    log.info("db_connected", uri=settings.mongodb_uri_masked, db=settings.mongodb_db_name)


async def close_db() -> None:
    global _client
    if _client is not None:
        await _client.close()
        _client = None


@asynccontextmanager
async def open_store() -> AsyncIterator[BeanieRecordStore]:
    """Acquire a session-bound store handle; the session ends on every exit path."""
    if _client is None:
        raise StoreUnavailableError()
    try:
        session = _client.start_session()
    except PyMongoError as e:
        raise StoreUnavailableError() from e
    try:
        yield BeanieRecordStore(session)
    finally:
        await session.end_session()
        log.debug("store_released")
