"""Payment workflow operations.

Every operation follows the same shape: rehydrate the machine for the
payment, send one event carrying the payment id, hand the machine back.
Follow-up events raised by actions are fully handled before the machine is
returned, so its state is the settled outcome of the call.
"""

from decimal import Decimal

from authflow.common.logging import logger, payment_id_ctx
from authflow.common.metrics import payment_operations_total
from authflow.common.state_machine import StateMachine
from authflow.services.payments.builder import PaymentMachineBuilder
from authflow.services.payments.guards import PAYMENT_ID_HEADER
from authflow.services.payments.models import Payment, PaymentEvent, PaymentState
from authflow.services.payments.repository import PaymentRepository
from authflow.services.payments.schemas import PaymentCreateRequest, PaymentResponse


class PaymentService:
    """Public entry point of the pre-auth / auth workflow."""

    def __init__(self, repository: PaymentRepository, builder: PaymentMachineBuilder) -> None:
        self.repository = repository
        self.builder = builder

    def new_payment(self, amount: Decimal | str) -> Payment:
        """Persist a payment in `NEW`."""

        req = PaymentCreateRequest(amount=amount)
        payment_operations_total.labels(operation="new_payment").inc()
        payment = self.repository.save(Payment(amount=req.amount, state=PaymentState.NEW))
        logger.info("payment_created payment_id=%s amount=%s", payment.payment_id, payment.amount)
        return payment

    def get_payment(self, payment_id: str) -> PaymentResponse:
        return PaymentResponse.model_validate(self.repository.load(payment_id))

    def pre_auth(self, payment_id: str) -> StateMachine:
        """Request pre-authorization; ends in PRE_AUTH or PRE_AUTH_ERROR."""

        return self._run("pre_auth", payment_id, PaymentEvent.PRE_AUTHORIZE)

    def authorize_payment(self, payment_id: str) -> StateMachine:
        """Request authorization of a pre-authorized payment; ends in AUTH or AUTH_ERROR.

        Callers should only invoke this for payments in PRE_AUTH. Any other
        state ignores the event and the machine is returned unchanged.
        """

        return self._run("authorize_payment", payment_id, PaymentEvent.AUTHORIZE)

    def _run(self, operation: str, payment_id: str, event: PaymentEvent) -> StateMachine:
        payment_operations_total.labels(operation=operation).inc()
        token = payment_id_ctx.set(payment_id)
        try:
            machine = self.builder.build(payment_id)
            accepted = machine.send_event(event, {PAYMENT_ID_HEADER: payment_id})
            logger.info(
                "payment_operation operation=%s payment_id=%s event=%s accepted=%s state=%s",
                operation,
                payment_id,
                event.value,
                accepted,
                machine.state.value,
            )
            return machine
        finally:
            payment_id_ctx.reset(token)
