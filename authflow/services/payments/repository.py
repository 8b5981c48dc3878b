"""Persistence boundary for payment records.

Each call runs in its own session and commits before returning, so a state
written here is visible to any later `load`.
"""

from sqlalchemy import update

from authflow.common.logging import logger
from authflow.services.payments.models import Payment, PaymentState


class PaymentNotFoundError(LookupError):
    """Raised when no payment exists for the requested identifier."""

    def __init__(self, payment_id: str) -> None:
        super().__init__(f"payment {payment_id} not found")
        self.payment_id = payment_id


class PaymentRepository:
    """Key-value style access to `payments` keyed by `payment_id`."""

    def __init__(self, session_factory) -> None:
        self.session_factory = session_factory

    def load(self, payment_id: str) -> Payment:
        with self.session_factory() as db:
            payment = db.get(Payment, payment_id)
            if payment is None:
                raise PaymentNotFoundError(payment_id)
            return payment

    def save(self, payment: Payment) -> Payment:
        with self.session_factory() as db:
            merged = db.merge(payment)
            db.commit()
            db.refresh(merged)
            return merged

    def update_state(self, payment_id: str, state: PaymentState) -> None:
        """Overwrite the persisted state of one payment."""

        with self.session_factory() as db:
            result = db.execute(
                update(Payment).where(Payment.payment_id == payment_id).values(state=state)
            )
            if result.rowcount != 1:
                db.rollback()
                raise PaymentNotFoundError(payment_id)
            db.commit()
        logger.debug("payment_state_saved payment_id=%s state=%s", payment_id, state.value)
