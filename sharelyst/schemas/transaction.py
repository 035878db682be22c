from datetime import datetime

from pydantic import BaseModel, Field
from typing import List

from sharelyst.schemas.settlements import Money

class PaymentInput(BaseModel):
    user_id: int
    amount: Money = Field(ge=0)

class TransactionCreate(BaseModel):
    name: str = Field(min_length=1)
    total: Money
    split: bool = False
    payments: List[PaymentInput] = Field(min_length=1)

class TransactionOut(BaseModel):
    id: int
    code: int
    name: str
    total: Money
    split: bool
    payments: List[PaymentInput]

class GroupTotalOut(BaseModel):
    total: Money

class PaymentDetailOut(BaseModel):
    user_id: int
    username: str
    first_name: str
    last_name: str
    amount: Money

class TransactionDetailOut(BaseModel):
    id: int
    code: int
    name: str
    total: Money
    split: bool
    created_at: datetime | None = None
    payments: List[PaymentDetailOut] = []
