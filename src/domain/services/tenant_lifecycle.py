from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Protocol

from domain.exceptions import InvalidTransitionError
from domain.models.tenant import (
    TRANSITIONS,
    LifecycleEvent,
    TenantStatus,
    Transition,
    build_transition_index,
)


class TransitionValidator(Protocol):
    """Computes the next status for ``event`` or rejects it."""

    def apply(self, current: TenantStatus, event: LifecycleEvent) -> TenantStatus: ...


class TableTransitionValidator:
    """Direct ``(event, src)`` lookup over the transition table."""

    def __init__(self, transitions: Iterable[Transition] = TRANSITIONS) -> None:
        self._index: Mapping[tuple[LifecycleEvent, TenantStatus], TenantStatus] = (
            build_transition_index(transitions)
        )

    def apply(self, current: TenantStatus, event: LifecycleEvent) -> TenantStatus:
        dst = self._index.get((event, current))
        if dst is None:
            raise InvalidTransitionError(event=event.value, current_status=current.value)
        return dst


# ---------------------------------------------------------------------------
# State-machine engine
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EventDescriptor:
    """Rows sharing an event and destination, grouped by their sources."""

    event: LifecycleEvent
    sources: frozenset[TenantStatus]
    dst: TenantStatus


def group_transitions(transitions: Iterable[Transition]) -> tuple[EventDescriptor, ...]:
    """Fold table rows into one descriptor per ``(event, dst)``.

    The table is validated first so grouping can never hide two rows that
    share ``(event, src)``.
    """
    rows = list(transitions)
    build_transition_index(rows)

    grouped: dict[tuple[LifecycleEvent, TenantStatus], set[TenantStatus]] = {}
    for row in rows:
        grouped.setdefault((row.event, row.dst), set()).add(row.src)
    return tuple(
        EventDescriptor(event=event, sources=frozenset(sources), dst=dst)
        for (event, dst), sources in grouped.items()
    )


class _LifecycleMachine:
    """Single-use machine seeded with a tenant's current status."""

    def __init__(self, initial: TenantStatus, descriptors: tuple[EventDescriptor, ...]) -> None:
        self.current = initial
        self._descriptors = descriptors

    def fire(self, event: LifecycleEvent) -> TenantStatus:
        for descriptor in self._descriptors:
            if descriptor.event == event and self.current in descriptor.sources:
                self.current = descriptor.dst
                return self.current
        raise InvalidTransitionError(event=event.value, current_status=self.current.value)


class MachineTransitionValidator:
    """Validator backed by a state machine built fresh for every call.

    Descriptors are immutable and shared; the machine holding the current
    status never outlives :meth:`apply`.
    """

    def __init__(self, transitions: Iterable[Transition] = TRANSITIONS) -> None:
        self._descriptors = group_transitions(transitions)

    def apply(self, current: TenantStatus, event: LifecycleEvent) -> TenantStatus:
        machine = _LifecycleMachine(current, self._descriptors)
        return machine.fire(event)
