"""Small synchronous finite-state machine engine.

A `TransitionTable` is a static graph of `(source, event) -> Transition`
edges, each optionally guarded and carrying ordered actions. A `StateMachine`
is a cheap, per-invocation interpreter of that table: it holds the current
state plus the interceptors and listeners attached for this invocation.

Dispatch rules:

* An event with no edge for the current state is ignored, not an error.
* A guard returning false blocks the edge exactly like a missing edge.
* For an accepted event: actions run, then every interceptor's
  `pre_state_change`, then the state is committed, then listeners fire.
  If an action or interceptor raises, the state is left untouched and the
  error propagates.
* Events sent while a dispatch is in progress (typically by an action) are
  queued and drained, in order, right after the current edge commits and
  before the outer `send_event` returns.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Hashable, Iterable, Mapping
from uuid import uuid4

from authflow.common.config import settings
from authflow.common.events import EventMessage
from authflow.common.logging import event_id_ctx, logger
from authflow.common.metrics import (
    state_events_ignored_total,
    state_transition_failures_total,
    state_transitions_total,
)


Guard = Callable[["StateContext"], bool]
Action = Callable[["StateContext"], None]


class EventChainTooLongError(RuntimeError):
    """Raised when follow-up events keep a single dispatch running too long."""


def label(value: Any) -> str:
    """Render states/events for logs and metric labels."""

    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


@dataclass(frozen=True)
class Transition:
    """One edge of the transition table."""

    source: Hashable
    event: Hashable
    target: Hashable
    guard: Guard | None = None
    actions: tuple[Action, ...] = ()

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target


class TransitionTable:
    """Immutable `(source, event) -> Transition` lookup shared by all machines."""

    def __init__(
        self,
        transitions: Iterable[Transition],
        initial: Hashable,
        terminal: Iterable[Hashable] = (),
        states: Iterable[Hashable] | None = None,
    ) -> None:
        self.initial = initial
        self.terminal = frozenset(terminal)
        edges: dict[tuple[Hashable, Hashable], Transition] = {}
        for transition in transitions:
            key = (transition.source, transition.event)
            if key in edges:
                raise ValueError(
                    f"Duplicate transition for state={label(transition.source)} event={label(transition.event)}"
                )
            if transition.source in self.terminal:
                raise ValueError(f"Terminal state {label(transition.source)} cannot have outgoing transitions")
            edges[key] = transition
        self._edges = edges

        known = {initial, *self.terminal}
        for transition in edges.values():
            known.update((transition.source, transition.target))
        if states is not None:
            declared = frozenset(states)
            missing = known - declared
            if missing:
                raise ValueError(f"Transitions reference undeclared states: {sorted(map(label, missing))}")
            known = set(declared)
        self.states = frozenset(known)

    def lookup(self, state: Hashable, event: Hashable) -> Transition | None:
        return self._edges.get((state, event))

    def events_for(self, state: Hashable) -> list[Hashable]:
        return [event for (source, event) in self._edges if source == state]

    def is_terminal(self, state: Hashable) -> bool:
        return state in self.terminal

    def __iter__(self):
        return iter(self._edges.values())

    def __len__(self) -> int:
        return len(self._edges)


@dataclass
class StateContext:
    """What guards, actions, interceptors and listeners see for one event."""

    machine: "StateMachine"
    message: EventMessage
    source: Hashable
    target: Hashable

    @property
    def event(self) -> Hashable:
        return self.message.event

    @property
    def headers(self) -> Mapping[str, Any]:
        return self.message.headers

    def get_header(self, name: str, default: Any = None) -> Any:
        return self.message.header(name, default)


class StateMachineInterceptor:
    """Hook run synchronously before a transition commits.

    Raising from `pre_state_change` aborts the transition.
    """

    def pre_state_change(self, target: Hashable, context: StateContext) -> None:
        pass


class StateMachineListener:
    """Observer notified after a transition has committed."""

    def state_changed(self, source: Hashable, target: Hashable, context: StateContext) -> None:
        pass


class LoggingStateListener(StateMachineListener):
    """Log every committed transition."""

    def state_changed(self, source: Hashable, target: Hashable, context: StateContext) -> None:
        logger.info(
            "state_changed machine_id=%s from=%s to=%s event=%s",
            context.machine.machine_id,
            label(source),
            label(target),
            label(context.event),
        )


@dataclass
class StateMachine:
    """One live interpreter of a `TransitionTable`."""

    table: TransitionTable
    machine_id: str = field(default_factory=lambda: str(uuid4()))
    max_chain: int = field(default_factory=lambda: settings.max_event_chain)

    def __post_init__(self) -> None:
        self._state = self.table.initial
        self._interceptors: list[StateMachineInterceptor] = []
        self._listeners: list[StateMachineListener] = []
        self._pending: deque[EventMessage] = deque()
        self._dispatching = False

    @property
    def state(self) -> Hashable:
        return self._state

    @property
    def is_complete(self) -> bool:
        return self.table.is_terminal(self._state)

    def add_interceptor(self, interceptor: StateMachineInterceptor) -> None:
        self._interceptors.append(interceptor)

    def add_listener(self, listener: StateMachineListener) -> None:
        self._listeners.append(listener)

    def reset(self, state: Hashable) -> None:
        """Pin the machine to `state` without running guards, actions or hooks."""

        if state not in self.table.states:
            raise ValueError(f"Unknown state {label(state)!r} for machine {self.machine_id}")
        if self._dispatching:
            raise RuntimeError("Cannot reset a state machine while it is dispatching an event")
        self._state = state

    def send_event(self, event: Hashable, headers: Mapping[str, Any] | None = None) -> bool:
        """Dispatch one event and any follow-ups it triggers.

        Returns whether `event` fired a transition. Called re-entrantly, the
        event is queued and `True` is returned.
        """

        message = EventMessage(event=event, headers=dict(headers or {}))
        if self._dispatching:
            self._pending.append(message)
            logger.debug(
                "event_deferred machine_id=%s event=%s queued=%s",
                self.machine_id,
                label(event),
                len(self._pending),
            )
            return True

        self._dispatching = True
        try:
            accepted = self._dispatch(message)
            handled = 1
            while self._pending:
                handled += 1
                if handled > self.max_chain:
                    raise EventChainTooLongError(
                        f"machine {self.machine_id} handled more than {self.max_chain} events in one dispatch"
                    )
                self._dispatch(self._pending.popleft())
            return accepted
        finally:
            self._pending.clear()
            self._dispatching = False

    def _ignore(self, message: EventMessage, reason: str) -> bool:
        state_events_ignored_total.labels(
            state=label(self._state),
            event=label(message.event),
            reason=reason,
        ).inc()
        logger.debug(
            "event_ignored machine_id=%s state=%s event=%s reason=%s",
            self.machine_id,
            label(self._state),
            label(message.event),
            reason,
        )
        return False

    def _dispatch(self, message: EventMessage) -> bool:
        transition = self.table.lookup(self._state, message.event)
        if transition is None:
            return self._ignore(message, "unmatched")

        context = StateContext(machine=self, message=message, source=self._state, target=transition.target)
        if transition.guard is not None and not transition.guard(context):
            return self._ignore(message, "guard_rejected")

        token = event_id_ctx.set(message.event_id)
        try:
            try:
                for action in transition.actions:
                    action(context)
                for interceptor in self._interceptors:
                    interceptor.pre_state_change(transition.target, context)
            except Exception as exc:
                state_transition_failures_total.labels(
                    source=label(transition.source),
                    event=label(transition.event),
                ).inc()
                logger.error(
                    "transition_aborted machine_id=%s from=%s event=%s error=%s",
                    self.machine_id,
                    label(transition.source),
                    label(transition.event),
                    exc,
                )
                raise

            self._state = transition.target
            state_transitions_total.labels(
                source=label(transition.source),
                target=label(transition.target),
                event=label(transition.event),
            ).inc()

            for listener in self._listeners:
                try:
                    listener.state_changed(transition.source, transition.target, context)
                except Exception as exc:
                    logger.exception("listener_error machine_id=%s error=%s", self.machine_id, exc)
        finally:
            event_id_ctx.reset(token)
        return True
