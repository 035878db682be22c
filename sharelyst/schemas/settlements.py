from decimal import Decimal
from enum import Enum
from typing import Annotated, List

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

# Decimal internally, plain JSON numbers on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class SettleAction(str, Enum):
    RESET = "reset"
    DELETE = "delete"


class MemberSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    amount_paid: Money = Field(alias="amountPaid")
    should_pay: Money = Field(alias="shouldPay")
    difference: Money


class Transfer(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_id: int = Field(alias="fromId")
    from_name: str = Field(alias="from")
    to_id: int = Field(alias="toId")
    to_name: str = Field(alias="to")
    amount: Money


class SettlementReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: Money
    per_person_amount: Money = Field(alias="perPersonAmount")
    users_summary: List[MemberSummary] = Field(default_factory=list, alias="usersSummary")
    transactions: List[Transfer] = Field(default_factory=list)


class SettleRequest(BaseModel):
    # validated by the service so non-HTTP callers get the same error
    action: str | None = None


class SettleResult(BaseModel):
    action: SettleAction
