"""Request/response shapes for payment workflow operations."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from authflow.services.payments.models import PaymentState


class PaymentCreateRequest(BaseModel):
    """Payment creation payload."""

    amount: Decimal = Field(gt=0, max_digits=19, decimal_places=2)


class PaymentResponse(BaseModel):
    """Read-only snapshot of a persisted payment."""

    model_config = ConfigDict(from_attributes=True)

    payment_id: str
    state: PaymentState
    amount: Decimal
