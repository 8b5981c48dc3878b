"""Prometheus metric definitions shared by the engine and payment workflow."""

from prometheus_client import Counter


state_transitions_total = Counter(
    "state_machine_transitions_total",
    "Committed state machine transitions",
    ["source", "target", "event"],
)
state_events_ignored_total = Counter(
    "state_machine_events_ignored_total",
    "Events that did not fire a transition",
    ["state", "event", "reason"],
)
state_transition_failures_total = Counter(
    "state_machine_transition_failures_total",
    "Transitions aborted by an action or interceptor error",
    ["source", "event"],
)
payment_operations_total = Counter(
    "payment_operations_total",
    "Payment workflow operations invoked",
    ["operation"],
)
authorization_decisions_total = Counter(
    "authorization_decisions_total",
    "Processor decisions taken by authorization actions",
    ["stage", "outcome"],
)
payment_notifications_total = Counter(
    "payment_notifications_total",
    "Outcome notifications emitted by the payment workflow",
    ["event"],
)
