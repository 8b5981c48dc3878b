"""Persist each payment transition before the state machine commits it."""

from sqlalchemy.exc import SQLAlchemyError

from authflow.common.logging import logger
from authflow.common.state_machine import StateContext, StateMachineInterceptor, label
from authflow.services.payments.guards import PAYMENT_ID_HEADER
from authflow.services.payments.models import PaymentState
from authflow.services.payments.repository import PaymentNotFoundError, PaymentRepository


class StatePersistenceError(RuntimeError):
    """The impending state could not be saved; the transition is aborted."""


class PaymentStateChangeInterceptor(StateMachineInterceptor):
    """Write the impending state to the payment record named by the event.

    Events without a payment id are let through unpersisted, which leaves
    the record behind the machine until the next persisted transition.
    """

    def __init__(self, repository: PaymentRepository) -> None:
        self.repository = repository

    def pre_state_change(self, target: PaymentState, context: StateContext) -> None:
        payment_id = context.get_header(PAYMENT_ID_HEADER)
        if payment_id is None:
            logger.warning(
                "state_not_persisted machine_id=%s event=%s target=%s reason=missing_payment_id",
                context.machine.machine_id,
                label(context.event),
                label(target),
            )
            return
        try:
            self.repository.update_state(str(payment_id), target)
        except (PaymentNotFoundError, SQLAlchemyError) as exc:
            raise StatePersistenceError(
                f"could not persist state {label(target)} for payment {payment_id}: {exc}"
            ) from exc
