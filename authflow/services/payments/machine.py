"""Transition table for the two-phase payment authorization workflow.

The self-loops `NEW -> NEW` and `PRE_AUTH -> PRE_AUTH` mean "processing was
requested, outcome not known yet": they only exist to run the processor
action, whose follow-up event then moves the payment on.
"""

from typing import Iterable, Mapping

from authflow.common.state_machine import Action, Transition, TransitionTable
from authflow.services.payments.actions import (
    notify_auth_approved,
    notify_auth_declined,
    notify_pre_auth_approved,
    notify_pre_auth_declined,
)
from authflow.services.payments.guards import payment_id_present
from authflow.services.payments.models import TERMINAL_STATES, PaymentEvent, PaymentState


def build_payment_transitions(
    pre_auth_action: Action,
    auth_action: Action,
    notifications: Mapping[PaymentEvent, Iterable[Action]] | None = None,
) -> TransitionTable:
    """Build the payment table around the given processor actions.

    `notifications` adds extra actions to the outcome edges, run after the
    built-in notification for that event.
    """

    extra = notifications or {}

    def outcome(event: PaymentEvent, default: Action) -> tuple[Action, ...]:
        return (default, *extra.get(event, ()))

    unknown = set(extra) - {
        PaymentEvent.PRE_AUTH_APPROVED,
        PaymentEvent.PRE_AUTH_DECLINED,
        PaymentEvent.AUTH_APPROVED,
        PaymentEvent.AUTH_DECLINED,
    }
    if unknown:
        raise ValueError(f"Notifications can only be attached to outcome events, got {sorted(e.value for e in unknown)}")

    return TransitionTable(
        [
            Transition(
                PaymentState.NEW,
                PaymentEvent.PRE_AUTHORIZE,
                PaymentState.NEW,
                guard=payment_id_present,
                actions=(pre_auth_action,),
            ),
            Transition(
                PaymentState.NEW,
                PaymentEvent.PRE_AUTH_APPROVED,
                PaymentState.PRE_AUTH,
                actions=outcome(PaymentEvent.PRE_AUTH_APPROVED, notify_pre_auth_approved),
            ),
            Transition(
                PaymentState.NEW,
                PaymentEvent.PRE_AUTH_DECLINED,
                PaymentState.PRE_AUTH_ERROR,
                actions=outcome(PaymentEvent.PRE_AUTH_DECLINED, notify_pre_auth_declined),
            ),
            Transition(
                PaymentState.PRE_AUTH,
                PaymentEvent.AUTHORIZE,
                PaymentState.PRE_AUTH,
                actions=(auth_action,),
            ),
            Transition(
                PaymentState.PRE_AUTH,
                PaymentEvent.AUTH_APPROVED,
                PaymentState.AUTH,
                actions=outcome(PaymentEvent.AUTH_APPROVED, notify_auth_approved),
            ),
            Transition(
                PaymentState.PRE_AUTH,
                PaymentEvent.AUTH_DECLINED,
                PaymentState.AUTH_ERROR,
                actions=outcome(PaymentEvent.AUTH_DECLINED, notify_auth_declined),
            ),
        ],
        initial=PaymentState.NEW,
        terminal=TERMINAL_STATES,
        states=PaymentState,
    )
