"""
Account management endpoints
"""

from fastapi import APIRouter, Depends, Query

from .deps import get_account_system
from .schemas import CreateAccountRequest, DeleteAccountRequest
from ..system import AccountSystem


router = APIRouter()


@router.post("")
def create_account(
    request: CreateAccountRequest,
    system: AccountSystem = Depends(get_account_system)
):
    """Open a new account"""
    account = system.account_manager.create_account(
        user_id=request.user_id,
        initial_balance=request.initial_balance
    )
    return {
        "user_id": account.user_id,
        "account_number": account.account_number,
        "registered_at": account.registered_at.isoformat()
    }


@router.delete("")
def delete_account(
    request: DeleteAccountRequest,
    system: AccountSystem = Depends(get_account_system)
):
    """Unregister an account"""
    account = system.account_manager.delete_account(
        user_id=request.user_id,
        account_number=request.account_number
    )
    return {
        "user_id": account.user_id,
        "account_number": account.account_number,
        "unregistered_at": account.unregistered_at.isoformat()
    }


@router.get("")
def get_accounts_by_user(
    user_id: int = Query(...),
    system: AccountSystem = Depends(get_account_system)
):
    """List a user's accounts with their balances"""
    accounts = system.account_manager.get_accounts_by_user(user_id)
    return [
        {"account_number": account.account_number, "balance": account.balance}
        for account in accounts
    ]


@router.get("/{account_id}")
def get_account(
    account_id: int,
    system: AccountSystem = Depends(get_account_system)
):
    """Get account details"""
    account = system.account_manager.get_account(account_id)
    return {
        "id": account.id,
        "user_id": account.user_id,
        "account_number": account.account_number,
        "status": account.status.value,
        "balance": account.balance,
        "registered_at": account.registered_at.isoformat(),
        "unregistered_at": account.unregistered_at.isoformat() if account.unregistered_at else None
    }
