"""Transition actions for the payment workflow.

`PreAuthAction` and `AuthAction` ask an authorization processor for a
decision and feed the outcome back into the same machine as a follow-up
event. The notification actions are observability-only hooks that
deployments can extend.
"""

import random
from enum import Enum

from authflow.common.logging import logger
from authflow.common.metrics import authorization_decisions_total, payment_notifications_total
from authflow.common.state_machine import StateContext
from authflow.services.payments.guards import PAYMENT_ID_HEADER
from authflow.services.payments.models import PaymentEvent


class AuthorizationDecision(str, Enum):
    APPROVED = "APPROVED"
    DECLINED = "DECLINED"


class AuthorizationProcessor:
    """Capability that approves or declines an authorization request."""

    def decide(self) -> AuthorizationDecision:
        raise NotImplementedError


class RandomAuthorizationProcessor(AuthorizationProcessor):
    """Simulated card processor approving `approval_rate` of requests."""

    def __init__(self, approval_rate: float = 0.8, rng: random.Random | None = None) -> None:
        if not 0.0 <= approval_rate <= 1.0:
            raise ValueError(f"approval_rate must be within [0, 1], got {approval_rate}")
        self.approval_rate = approval_rate
        self.rng = rng or random.Random()

    def decide(self) -> AuthorizationDecision:
        if self.rng.random() < self.approval_rate:
            return AuthorizationDecision.APPROVED
        return AuthorizationDecision.DECLINED


class _ProcessorAction:
    """Ask the processor, then send the approved/declined follow-up event."""

    stage = ""
    approved_event: PaymentEvent
    declined_event: PaymentEvent

    def __init__(self, processor: AuthorizationProcessor) -> None:
        self.processor = processor

    def __call__(self, context: StateContext) -> None:
        payment_id = context.get_header(PAYMENT_ID_HEADER)
        decision = self.processor.decide()
        authorization_decisions_total.labels(stage=self.stage, outcome=decision.value).inc()
        logger.info(
            "authorization_decided stage=%s payment_id=%s decision=%s",
            self.stage,
            payment_id,
            decision.value,
        )
        follow_up = self.approved_event if decision is AuthorizationDecision.APPROVED else self.declined_event
        context.machine.send_event(follow_up, {PAYMENT_ID_HEADER: payment_id})


class PreAuthAction(_ProcessorAction):
    stage = "pre_auth"
    approved_event = PaymentEvent.PRE_AUTH_APPROVED
    declined_event = PaymentEvent.PRE_AUTH_DECLINED


class AuthAction(_ProcessorAction):
    stage = "auth"
    approved_event = PaymentEvent.AUTH_APPROVED
    declined_event = PaymentEvent.AUTH_DECLINED


class NotifyAction:
    """Record that a payment reached the outcome signalled by `event`."""

    def __init__(self, event: PaymentEvent) -> None:
        self.event = event

    def __call__(self, context: StateContext) -> None:
        payment_notifications_total.labels(event=self.event.value).inc()
        logger.info(
            "payment_notification event=%s payment_id=%s target=%s",
            self.event.value,
            context.get_header(PAYMENT_ID_HEADER),
            context.target.value,
        )


notify_pre_auth_approved = NotifyAction(PaymentEvent.PRE_AUTH_APPROVED)
notify_pre_auth_declined = NotifyAction(PaymentEvent.PRE_AUTH_DECLINED)
notify_auth_approved = NotifyAction(PaymentEvent.AUTH_APPROVED)
notify_auth_declined = NotifyAction(PaymentEvent.AUTH_DECLINED)
