"""
Pydantic schemas for API requests
"""

from pydantic import BaseModel, Field

ACCOUNT_NUMBER_LENGTH = 10
MAX_REQUEST_AMOUNT = 1_000_000_000


# Account schemas
class CreateAccountRequest(BaseModel):
    user_id: int = Field(..., ge=1)
    initial_balance: int = Field(..., le=MAX_REQUEST_AMOUNT)


class DeleteAccountRequest(BaseModel):
    user_id: int = Field(..., ge=1)
    account_number: str = Field(..., min_length=ACCOUNT_NUMBER_LENGTH, max_length=ACCOUNT_NUMBER_LENGTH)


# Transaction schemas
class UseBalanceRequest(BaseModel):
    user_id: int = Field(..., ge=1)
    account_number: str = Field(..., min_length=ACCOUNT_NUMBER_LENGTH, max_length=ACCOUNT_NUMBER_LENGTH)
    amount: int = Field(..., le=MAX_REQUEST_AMOUNT, description="Minimum unit is enforced by the service")


class CancelBalanceRequest(BaseModel):
    transaction_id: str = Field(..., min_length=1)
    account_number: str = Field(..., min_length=ACCOUNT_NUMBER_LENGTH, max_length=ACCOUNT_NUMBER_LENGTH)
    amount: int = Field(..., le=MAX_REQUEST_AMOUNT)
