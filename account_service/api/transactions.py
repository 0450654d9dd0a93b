"""
Balance transaction endpoints

Handlers are plain functions so FastAPI runs them in its threadpool; a
request waiting on an account lock must not block the event loop.
"""

from fastapi import APIRouter, Depends

from .deps import get_account_system
from .schemas import UseBalanceRequest, CancelBalanceRequest
from ..models import Transaction
from ..system import AccountSystem


router = APIRouter()


def _transaction_response(transaction: Transaction) -> dict:
    return {
        "account_number": transaction.account_number,
        "transaction_type": transaction.transaction_type.value,
        "transaction_result": transaction.result.value,
        "transaction_id": transaction.transaction_id,
        "amount": transaction.amount,
        "balance_snapshot": transaction.balance_snapshot,
        "transacted_at": transaction.transacted_at.isoformat()
    }


@router.post("/use")
def use_balance(
    request: UseBalanceRequest,
    system: AccountSystem = Depends(get_account_system)
):
    """Use account balance"""
    transaction = system.transaction_engine.use_balance(
        user_id=request.user_id,
        account_number=request.account_number,
        amount=request.amount
    )
    return _transaction_response(transaction)


@router.post("/cancel")
def cancel_balance(
    request: CancelBalanceRequest,
    system: AccountSystem = Depends(get_account_system)
):
    """Cancel a previous balance use"""
    transaction = system.transaction_engine.cancel_balance(
        transaction_id=request.transaction_id,
        account_number=request.account_number,
        amount=request.amount
    )
    return _transaction_response(transaction)


@router.get("/{transaction_id}")
def query_transaction(
    transaction_id: str,
    system: AccountSystem = Depends(get_account_system)
):
    """Look up a transaction by its external id"""
    transaction = system.transaction_query.get_transaction(transaction_id)
    return _transaction_response(transaction)
