"""Payment transition table, guard and actions without persistence."""

import random

import pytest

from authflow.common.state_machine import StateMachine
from authflow.services.payments.actions import (
    AuthAction,
    AuthorizationDecision,
    PreAuthAction,
    RandomAuthorizationProcessor,
)
from authflow.services.payments.guards import PAYMENT_ID_HEADER
from authflow.services.payments.machine import build_payment_transitions
from authflow.services.payments.models import TERMINAL_STATES, PaymentEvent, PaymentState
from conftest import APPROVED, DECLINED, ScriptedProcessor


def make_machine(pre_auth=(), auth=(), notifications=None):
    pre_auth_processor = ScriptedProcessor(*pre_auth)
    auth_processor = ScriptedProcessor(*auth)
    table = build_payment_transitions(
        PreAuthAction(pre_auth_processor),
        AuthAction(auth_processor),
        notifications=notifications,
    )
    return StateMachine(table, machine_id="pay-1"), pre_auth_processor, auth_processor


def test_table_shape():
    """Six edges; terminal states accept nothing."""

    machine, _, _ = make_machine()
    table = machine.table
    assert len(table) == 6
    assert table.initial == PaymentState.NEW
    assert table.terminal == TERMINAL_STATES
    for state in TERMINAL_STATES:
        assert table.events_for(state) == []
    assert table.lookup(PaymentState.NEW, PaymentEvent.PRE_AUTHORIZE).is_self_loop
    assert table.lookup(PaymentState.PRE_AUTH, PaymentEvent.AUTHORIZE).is_self_loop


def test_new_machine_walkthrough():
    """Pre-authorize without id is blocked; outcome events then drive the machine."""

    machine, pre_auth_processor, _ = make_machine()
    assert machine.state == PaymentState.NEW

    assert machine.send_event(PaymentEvent.PRE_AUTHORIZE) is False
    assert machine.state == PaymentState.NEW
    assert pre_auth_processor.calls == 0

    machine.send_event(PaymentEvent.PRE_AUTH_APPROVED)
    assert machine.state == PaymentState.PRE_AUTH

    # No PRE_AUTH_DECLINED edge out of PRE_AUTH.
    assert machine.send_event(PaymentEvent.PRE_AUTH_DECLINED) is False
    assert machine.state == PaymentState.PRE_AUTH


def test_null_payment_id_is_blocked():
    machine, pre_auth_processor, _ = make_machine()
    assert machine.send_event(PaymentEvent.PRE_AUTHORIZE, {PAYMENT_ID_HEADER: None}) is False
    assert machine.state == PaymentState.NEW
    assert pre_auth_processor.calls == 0


@pytest.mark.parametrize(
    "decision, expected",
    [(APPROVED, PaymentState.PRE_AUTH), (DECLINED, PaymentState.PRE_AUTH_ERROR)],
)
def test_pre_authorize_settles_on_outcome(decision, expected):
    machine, pre_auth_processor, _ = make_machine(pre_auth=[decision])
    machine.send_event(PaymentEvent.PRE_AUTHORIZE, {PAYMENT_ID_HEADER: "pay-1"})
    assert machine.state == expected
    assert pre_auth_processor.calls == 1


@pytest.mark.parametrize(
    "decision, expected",
    [(APPROVED, PaymentState.AUTH), (DECLINED, PaymentState.AUTH_ERROR)],
)
def test_authorize_settles_on_outcome(decision, expected):
    machine, _, auth_processor = make_machine(auth=[decision])
    machine.reset(PaymentState.PRE_AUTH)
    machine.send_event(PaymentEvent.AUTHORIZE, {PAYMENT_ID_HEADER: "pay-1"})
    assert machine.state == expected
    assert machine.is_complete
    assert auth_processor.calls == 1


def test_terminal_states_ignore_everything():
    machine, pre_auth_processor, auth_processor = make_machine()
    machine.reset(PaymentState.PRE_AUTH_ERROR)
    for event in PaymentEvent:
        assert machine.send_event(event, {PAYMENT_ID_HEADER: "pay-1"}) is False
    assert machine.state == PaymentState.PRE_AUTH_ERROR
    assert pre_auth_processor.calls == auth_processor.calls == 0


def test_extra_notifications_run_on_outcome_edges():
    seen = []
    machine, _, _ = make_machine(
        pre_auth=[APPROVED],
        notifications={PaymentEvent.PRE_AUTH_APPROVED: [lambda ctx: seen.append(ctx.get_header(PAYMENT_ID_HEADER))]},
    )
    machine.send_event(PaymentEvent.PRE_AUTHORIZE, {PAYMENT_ID_HEADER: "pay-1"})
    assert seen == ["pay-1"]


def test_notifications_only_attach_to_outcome_events():
    with pytest.raises(ValueError):
        make_machine(notifications={PaymentEvent.AUTHORIZE: [lambda ctx: None]})


def test_random_processor_bounds():
    with pytest.raises(ValueError):
        RandomAuthorizationProcessor(1.5)
    always = RandomAuthorizationProcessor(1.0, random.Random(1))
    never = RandomAuthorizationProcessor(0.0, random.Random(1))
    assert {always.decide() for _ in range(50)} == {AuthorizationDecision.APPROVED}
    assert {never.decide() for _ in range(50)} == {AuthorizationDecision.DECLINED}
