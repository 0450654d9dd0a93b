"""
Repository Stores

Typed find/save/count access to users, accounts and transactions on top of a
``StorageInterface``. New records get their integer id from a storage
sequence named after the table.
"""

from typing import List, Optional

from .storage import StorageInterface
from .models import AccountUser, Account, AccountStatus, Transaction


class UserStore:
    """Lookup of account owners"""

    def __init__(self, storage: StorageInterface, table_name: str = "account_users"):
        self.storage = storage
        self.table_name = table_name

    def find_user_by_id(self, user_id: int) -> Optional[AccountUser]:
        data = self.storage.load(self.table_name, str(user_id))
        if data:
            return AccountUser.from_dict(data)
        return None

    def save(self, user: AccountUser) -> AccountUser:
        if user.id is None:
            user.id = self.storage.next_sequence(self.table_name)
        self.storage.save(self.table_name, str(user.id), user.to_dict())
        return user


class AccountStore:
    """Account persistence keyed by id, with number and owner lookups"""

    def __init__(self, storage: StorageInterface, table_name: str = "accounts"):
        self.storage = storage
        self.table_name = table_name

    def find_by_id(self, account_id: int) -> Optional[Account]:
        data = self.storage.load(self.table_name, str(account_id))
        if data:
            return Account.from_dict(data)
        return None

    def find_by_account_number(self, account_number: str) -> Optional[Account]:
        found = self.storage.find(self.table_name, {"account_number": account_number})
        if found:
            return Account.from_dict(found[0])
        return None

    def exists_account_number(self, account_number: str) -> bool:
        return self.storage.count(self.table_name, {"account_number": account_number}) > 0

    def find_by_user(self, user_id: int) -> List[Account]:
        accounts = [
            Account.from_dict(data)
            for data in self.storage.find(self.table_name, {"user_id": user_id})
        ]
        accounts.sort(key=lambda account: account.id)
        return accounts

    def count_by_user(self, user_id: int, status: Optional[AccountStatus] = None) -> int:
        filters = {"user_id": user_id}
        if status:
            filters["status"] = status.value
        return self.storage.count(self.table_name, filters)

    def save(self, account: Account) -> Account:
        if account.id is None:
            account.id = self.storage.next_sequence(self.table_name)
        self.storage.save(self.table_name, str(account.id), account.to_dict())
        return account


class TransactionStore:
    """Append-only transaction persistence"""

    def __init__(self, storage: StorageInterface, table_name: str = "transactions"):
        self.storage = storage
        self.table_name = table_name

    def find_by_transaction_id(self, transaction_id: str) -> Optional[Transaction]:
        found = self.storage.find(self.table_name, {"transaction_id": transaction_id})
        if found:
            return Transaction.from_dict(found[0])
        return None

    def find_by_original_transaction_id(self, transaction_id: str) -> List[Transaction]:
        return [
            Transaction.from_dict(data)
            for data in self.storage.find(self.table_name, {"original_transaction_id": transaction_id})
        ]

    def find_by_account_number(self, account_number: str) -> List[Transaction]:
        transactions = [
            Transaction.from_dict(data)
            for data in self.storage.find(self.table_name, {"account_number": account_number})
        ]
        transactions.sort(key=lambda txn: (txn.transacted_at, txn.id))
        return transactions

    def save(self, transaction: Transaction) -> Transaction:
        if transaction.id is not None:
            raise ValueError(f"Transaction {transaction.id} is already recorded")
        transaction.id = self.storage.next_sequence(self.table_name)
        self.storage.save(self.table_name, str(transaction.id), transaction.to_dict())
        return transaction
