from pydantic import BaseModel, Field, field_validator
from enum import Enum
from typing import Dict, Optional
from decimal import Context, Decimal, DivisionByZero, Inexact, InvalidOperation, Overflow, ROUND_HALF_EVEN, localcontext

from errors import AmountParseError

AMOUNT_PLACES = Decimal("0.0001")
ZERO = Decimal("0.0000")
# 24 integer digits + 4 places fits the default 28-digit context
MAX_AMOUNT = Decimal("1E24")
# balances are sums of at most 2**32 amounts below MAX_AMOUNT, far inside 64 digits
LEDGER_CONTEXT = Context(
    prec=64,
    rounding=ROUND_HALF_EVEN,
    traps=[InvalidOperation, DivisionByZero, Overflow, Inexact],
)
# amounts themselves are rounded to 4 places on input
PARSE_CONTEXT = Context(prec=28, rounding=ROUND_HALF_EVEN)


class TransactionType(str, Enum):
    deposit = "deposit"
    withdrawal = "withdrawal"
    dispute = "dispute"
    resolve = "resolve"
    chargeback = "chargeback"

    @classmethod
    def from_text(cls, text: str) -> Optional["TransactionType"]:
        """Map raw type text to a member, or None for unrecognized text."""
        try:
            return cls(text)
        except ValueError:
            return None


def parse_amount(raw: Optional[str]) -> Decimal:
    """Parse amount text into a 4-place Decimal.

    Empty or missing text is zero. Anything that is not a finite decimal
    number below MAX_AMOUNT in magnitude raises AmountParseError.
    """
    if raw is None or raw == "":
        return ZERO
    try:
        value = Decimal(raw)
        if not value.is_finite() or value.copy_abs() >= MAX_AMOUNT:
            raise AmountParseError(raw)
        return value.quantize(AMOUNT_PLACES, context=PARSE_CONTEXT)
    except InvalidOperation:
        raise AmountParseError(raw)


class TransactionRecord(BaseModel):
    """One row of the input feed, validated for shape only."""

    model_config = {"frozen": True}

    transaction_type: str = Field(..., description="Raw transaction type text")
    client_id: int = Field(..., ge=0, le=0xFFFF, description="Client identifier (u16)")
    transaction_id: int = Field(..., ge=0, le=0xFFFFFFFF, description="Transaction identifier (u32)")
    amount: Optional[str] = Field(None, description="Decimal amount text, absent for dispute lifecycle rows")

    @field_validator('transaction_type', 'amount', mode='before')
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @property
    def kind(self) -> Optional[TransactionType]:
        return TransactionType.from_text(self.transaction_type)


class DepositRecord(BaseModel):
    transaction_id: int
    amount: Decimal
    in_dispute: bool = False


class Account(BaseModel):
    client_id: int = Field(..., ge=0, le=0xFFFF)
    available: Decimal = ZERO
    held: Decimal = ZERO
    locked: bool = False
    deposits: Dict[int, DepositRecord] = Field(default_factory=dict)

    @property
    def total(self) -> Decimal:
        with localcontext(LEDGER_CONTEXT):
            return self.available + self.held

    def to_balance(self) -> "AccountBalance":
        return AccountBalance(
            client=self.client_id,
            available=self.available,
            held=self.held,
            total=self.total,
            locked=self.locked,
        )


class AccountBalance(BaseModel):
    client: int = Field(..., description="Client identifier")
    available: Decimal = Field(..., description="Funds available for withdrawal")
    held: Decimal = Field(..., description="Funds held pending dispute resolution")
    total: Decimal = Field(..., description="available + held")
    locked: bool = Field(..., description="Account frozen by a chargeback")
