from pocketa.models.user import User
from pocketa.models.allowance import Allowance
from pocketa.models.transaction import Transaction
from pocketa.models.essential import Essential
from pocketa.models.audit_log import BalanceOverrideLog

__all__ = [
    "User",
    "Allowance",
    "Transaction",
    "Essential",
    "BalanceOverrideLog",
]
