"""Payment workflow vocabulary and the persisted payment record.

The `payments.state` column is the only thing that survives between state
machine invocations.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from sqlalchemy import DateTime, Numeric, String, func
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from authflow.common.db import Base


class PaymentState(str, Enum):
    NEW = "NEW"
    PRE_AUTH = "PRE_AUTH"
    PRE_AUTH_ERROR = "PRE_AUTH_ERROR"
    AUTH = "AUTH"
    AUTH_ERROR = "AUTH_ERROR"


class PaymentEvent(str, Enum):
    PRE_AUTHORIZE = "PRE_AUTHORIZE"
    PRE_AUTH_APPROVED = "PRE_AUTH_APPROVED"
    PRE_AUTH_DECLINED = "PRE_AUTH_DECLINED"
    AUTHORIZE = "AUTHORIZE"
    AUTH_APPROVED = "AUTH_APPROVED"
    AUTH_DECLINED = "AUTH_DECLINED"


TERMINAL_STATES: frozenset[PaymentState] = frozenset(
    {PaymentState.AUTH, PaymentState.PRE_AUTH_ERROR, PaymentState.AUTH_ERROR}
)


class Payment(Base):
    """Current state of one payment."""

    __tablename__ = "payments"

    payment_id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid4()))
    state: Mapped[PaymentState] = mapped_column(
        SAEnum(PaymentState, native_enum=False, length=32),
        index=True,
        default=PaymentState.NEW,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(19, 2))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"Payment(payment_id={self.payment_id!r}, state={self.state}, amount={self.amount})"
