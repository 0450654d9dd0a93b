"""
Domain Models

Users, accounts and balance transactions as plain dataclasses. Relations are
explicit foreign keys (``Account.user_id``, ``Transaction.account_id``);
nothing is lazily loaded, every cross-entity read goes through a store.
"""

from datetime import datetime
from dataclasses import dataclass, asdict
from typing import Dict, Optional, Any
from enum import Enum

from .errors import AccountServiceError, ErrorCode


class AccountStatus(Enum):
    """Account lifecycle states (IN_USE -> UNREGISTERED is terminal)"""
    IN_USE = "IN_USE"
    UNREGISTERED = "UNREGISTERED"


class TransactionType(Enum):
    """Balance transaction types"""
    USE = "USE"
    CANCEL = "CANCEL"


class TransactionResult(Enum):
    """Outcome of a balance transaction attempt"""
    SUCCESS = "SUCCESS"
    FAIL = "FAIL"


def _to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _from_iso(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass
class AccountUser:
    """Account owner, managed outside this service"""
    id: Optional[int]
    name: str
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result['created_at'] = _to_iso(self.created_at)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AccountUser':
        return cls(
            id=data['id'],
            name=data['name'],
            created_at=_from_iso(data.get('created_at'))
        )


@dataclass
class Account:
    """
    Balance-holding account owned by a single user.

    ``balance`` is the authoritative current value and never negative. Only
    the balance transaction engine, holding the account lock, changes it.
    """
    id: Optional[int]
    user_id: int
    account_number: str
    status: AccountStatus
    balance: int
    registered_at: datetime
    unregistered_at: Optional[datetime] = None

    def __post_init__(self):
        if self.balance < 0:
            raise ValueError("Account balance cannot be negative")

    @property
    def is_in_use(self) -> bool:
        return self.status == AccountStatus.IN_USE

    def use_balance(self, amount: int, minimum_amount: int) -> None:
        """Deduct amount, enforcing the minimum unit and available balance"""
        if amount < minimum_amount:
            raise AccountServiceError(
                ErrorCode.INVALID_REQUEST,
                f"Amount must be at least {minimum_amount}"
            )
        if amount > self.balance:
            raise AccountServiceError(ErrorCode.AMOUNT_EXCEED_BALANCE)
        self.balance -= amount

    def cancel_balance(self, amount: int) -> None:
        """Credit back a previously used amount"""
        if amount < 0:
            raise AccountServiceError(
                ErrorCode.INVALID_REQUEST, "Cancel amount cannot be negative"
            )
        self.balance += amount

    def unregister(self, when: datetime) -> None:
        self.status = AccountStatus.UNREGISTERED
        self.unregistered_at = when

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result['status'] = self.status.value
        result['registered_at'] = _to_iso(self.registered_at)
        result['unregistered_at'] = _to_iso(self.unregistered_at)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Account':
        return cls(
            id=data['id'],
            user_id=data['user_id'],
            account_number=data['account_number'],
            status=AccountStatus(data['status']),
            balance=data['balance'],
            registered_at=_from_iso(data['registered_at']),
            unregistered_at=_from_iso(data.get('unregistered_at'))
        )


@dataclass
class Transaction:
    """
    Append-only record of a balance operation attempt.

    FAIL records are audit artifacts: they carry no balance snapshot and are
    never cancelable. ``account_id`` is None when the submitted account number
    did not resolve to an account.
    """
    id: Optional[int]
    transaction_type: TransactionType
    result: TransactionResult
    account_number: str
    amount: int
    transaction_id: str
    transacted_at: datetime
    account_id: Optional[int] = None
    balance_snapshot: Optional[int] = None
    original_transaction_id: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.result == TransactionResult.SUCCESS

    @property
    def is_cancelable(self) -> bool:
        """Only a successful USE can be reversed"""
        return self.is_success and self.transaction_type == TransactionType.USE

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result['transaction_type'] = self.transaction_type.value
        result['result'] = self.result.value
        result['transacted_at'] = _to_iso(self.transacted_at)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        return cls(
            id=data['id'],
            transaction_type=TransactionType(data['transaction_type']),
            result=TransactionResult(data['result']),
            account_number=data['account_number'],
            amount=data['amount'],
            transaction_id=data['transaction_id'],
            transacted_at=_from_iso(data['transacted_at']),
            account_id=data.get('account_id'),
            balance_snapshot=data.get('balance_snapshot'),
            original_transaction_id=data.get('original_transaction_id')
        )
