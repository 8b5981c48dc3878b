"""Rehydrate a live payment state machine from the persisted payment record.

Work on a payment can be spread over arbitrarily long gaps (pre-auth now,
auth minutes or days later). Nothing is kept in memory between calls: each
call builds a fresh machine, pins it to the stored state and attaches the
interceptor that keeps the record in step with it.
"""

from typing import Iterable

from authflow.common.config import settings
from authflow.common.logging import logger
from authflow.common.state_machine import StateMachine, StateMachineListener, TransitionTable
from authflow.services.payments.interceptor import PaymentStateChangeInterceptor
from authflow.services.payments.repository import PaymentRepository


class PaymentMachineBuilder:
    """Builds one state machine per call, keyed by payment id."""

    def __init__(
        self,
        repository: PaymentRepository,
        transitions: TransitionTable,
        interceptor: PaymentStateChangeInterceptor,
        listeners: Iterable[StateMachineListener] = (),
        max_chain: int | None = None,
    ) -> None:
        self.repository = repository
        self.transitions = transitions
        self.interceptor = interceptor
        self.listeners = tuple(listeners)
        self.max_chain = max_chain or settings.max_event_chain

    def build(self, payment_id: str) -> StateMachine:
        """Return a machine sitting in the payment's persisted state.

        Raises `PaymentNotFoundError` when the payment does not exist.
        """

        payment = self.repository.load(payment_id)
        machine = StateMachine(self.transitions, machine_id=payment.payment_id, max_chain=self.max_chain)
        # Direct reset: restores prior progress without re-running guards or actions.
        machine.reset(payment.state)
        machine.add_interceptor(self.interceptor)
        for listener in self.listeners:
            machine.add_listener(listener)
        logger.debug("machine_rehydrated payment_id=%s state=%s", payment.payment_id, payment.state.value)
        return machine
