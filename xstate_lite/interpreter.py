"""
Stateful interpreter around a StateMachine with Prometheus metrics.
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, Info

from .config import Settings
from .core import Action, EventLike, State, StateLike, StateMachine, as_event, as_state

logger = logging.getLogger(__name__)


def _metric_prefix(name: str) -> str:
    prefix = re.sub(r'[^a-zA-Z0-9_]', '_', name.lower())
    if prefix[:1].isdigit():
        prefix = f"_{prefix}"
    return prefix or "machine"


class Interpreter:
    """
    Tracks the current state of a machine and feeds it events.

    Features:
    - Bounded transition history
    - Prometheus metrics for transitions and ignored events

    Actions are returned to the caller, never executed. Not thread-safe;
    share the underlying StateMachine instead and give each thread its own
    interpreter.

    Metrics are registered under ``name`` on the global Prometheus registry
    unless ``registry`` is given; a second interpreter with the same name
    on the same registry fails with a duplicated timeseries error.
    """

    def __init__(self,
                 machine: StateMachine,
                 name: str = "machine",
                 initial_state: Optional[StateLike] = None,
                 settings: Optional[Settings] = None,
                 registry: Optional[CollectorRegistry] = None):
        """
        Initialize interpreter.

        Args:
            machine: Machine to interpret
            name: Name used in logs and as metric prefix
            initial_state: Overrides the definition's initial state
            settings: Runtime settings (defaults to Settings())
            registry: Prometheus registry (defaults to the global one)
        """
        self.machine = machine
        self.name = name
        self.settings = settings or Settings()
        self._initial_state = (as_state(initial_state) if initial_state is not None
                               else machine.initial_state)
        self.current_state = self._initial_state
        self._history: List[Dict[str, Any]] = []

        self._metrics_enabled = self.settings.metrics_enabled
        if self._metrics_enabled:
            self._init_metrics(registry if registry is not None else REGISTRY)
            self._update_state_info(None, None)

    def _init_metrics(self, registry: CollectorRegistry):
        """Initialize Prometheus metrics"""
        metric_name = _metric_prefix(self.name)

        self.transition_counter = Counter(
            f'{metric_name}_transitions_total',
            f'Total state transitions of {self.name}',
            labelnames=['from_state', 'to_state', 'event'],
            registry=registry
        )

        self.ignored_counter = Counter(
            f'{metric_name}_ignored_events_total',
            f'Events that did not cause a transition in {self.name}',
            labelnames=['state', 'event'],
            registry=registry
        )

        self.transition_latency = Histogram(
            f'{metric_name}_transition_latency_seconds',
            'Latency of transition resolution',
            buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1),
            registry=registry
        )

        self.state_info = Info(
            f'{metric_name}_state',
            f'Current state of {self.name}',
            registry=registry
        )

    def _update_state_info(self, previous: Optional[State], event: Optional[str]):
        self.state_info.info({
            'state': self.current_state.value,
            'previous_state': previous.value if previous else '',
            'event': event or '',
        })

    def send(self, event: EventLike) -> List[Action]:
        """
        Process an event against the current state.

        Returns:
            Actions to execute, in order. Empty when the event was ignored.
        """
        event = as_event(event)
        start = datetime.utcnow()
        old_state = self.current_state

        next_state, actions = self.machine.transition(old_state, event)
        latency = (datetime.utcnow() - start).total_seconds()

        if next_state == old_state and not actions:
            logger.debug(f"{self.name}: {event.type} ignored in {old_state.value}")
            if self._metrics_enabled:
                self.ignored_counter.labels(state=old_state.value, event=event.type).inc()
            return actions

        self.current_state = next_state
        self._record_transition(old_state, next_state, event.type, actions, latency)

        logger.info(f"{self.name}: {old_state.value} -> {next_state.value} via {event.type}")
        return actions

    def _record_transition(self,
                           from_state: State,
                           to_state: State,
                           event: str,
                           actions: List[Action],
                           latency: float):
        """Record transition in metrics and history"""
        if self._metrics_enabled:
            self.transition_counter.labels(
                from_state=from_state.value,
                to_state=to_state.value,
                event=event
            ).inc()
            self.transition_latency.observe(latency)
            self._update_state_info(from_state, event)

        limit = self.settings.history_limit
        if limit == 0:
            return

        self._history.append({
            'timestamp': datetime.utcnow().isoformat(),
            'from': from_state.value,
            'to': to_state.value,
            'event': event,
            'actions': [a.type for a in actions],
            'latency_ms': latency * 1000,
        })
        if len(self._history) > limit:
            del self._history[:-limit]

    def reset(self):
        """Return to the initial state and forget history"""
        self.current_state = self._initial_state
        self._history.clear()
        if self._metrics_enabled:
            self._update_state_info(None, None)

    # Public API for introspection
    def get_state(self) -> State:
        return self.current_state

    def history(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Get state transition history, most recent last"""
        if limit <= 0:
            return []
        return self._history[-limit:]

    def available_events(self) -> List[str]:
        return self.machine.available_events(self.current_state)

    def visualize(self) -> str:
        return self.machine.visualize(self.current_state, title=self.name)
