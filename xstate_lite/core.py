"""
Core flat state machine: definition model and transition resolution.

The resolver is a pure function of its inputs. Malformed or partial
definitions never raise here; they degrade to "stay put, do nothing".
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from typing_extensions import TypeAlias

logger = logging.getLogger(__name__)


JSONValue: TypeAlias = Union[None, bool, int, float, str, List[Any], Dict[str, Any]]
Params: TypeAlias = Mapping[str, JSONValue]
GuardPredicate: TypeAlias = Callable[[Params], bool]
GuardRegistry: TypeAlias = Mapping[str, GuardPredicate]

_EMPTY: Mapping[str, Any] = MappingProxyType({})


def _freeze(mapping: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    """Read-only view over a private copy of ``mapping``"""
    if not mapping:
        return _EMPTY
    return MappingProxyType(dict(mapping))


def freeze_value(value: Any) -> Any:
    """Deep read-only copy of a JSON value: objects become mapping views, lists tuples"""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze_value(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze_value(item) for item in value)
    return value


def thaw_value(value: Any) -> Any:
    """Plain dict/list copy of a frozen JSON value"""
    if isinstance(value, Mapping):
        return {key: thaw_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw_value(item) for item in value]
    return value


def _freeze_params(params: Optional[Params]) -> Params:
    if not params:
        return _EMPTY
    return freeze_value(params)


@dataclass(frozen=True)
class Action:
    """Data-only description of an effect to be performed by the caller"""
    type: str
    params: Params = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "params", _freeze_params(self.params))


@dataclass(frozen=True)
class Guard:
    """Named predicate reference gating a transition"""
    type: str
    params: Params = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "params", _freeze_params(self.params))


@dataclass(frozen=True)
class Transition:
    """Edge taken when an event arrives in a state"""
    target: str
    guard: Optional[Guard] = None
    actions: Tuple[Action, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "actions", tuple(self.actions or ()))


@dataclass(frozen=True)
class StateConfig:
    """Transitions plus entry/exit actions of a single state"""
    on: Mapping[str, Transition] = field(default_factory=dict)
    entry: Tuple[Action, ...] = ()
    exit: Tuple[Action, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "on", _freeze(self.on))
        object.__setattr__(self, "entry", tuple(self.entry or ()))
        object.__setattr__(self, "exit", tuple(self.exit or ()))


@dataclass(frozen=True)
class MachineDefinition:
    """Immutable machine: initial state name and the state table"""
    initial: str
    states: Mapping[str, StateConfig] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "states", _freeze(self.states))


@dataclass(frozen=True)
class State:
    """Current state of a machine"""
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Event:
    """Incoming event; only the type takes part in transition selection"""
    type: str

    def __str__(self) -> str:
        return self.type


StateLike = Union[State, str]
EventLike = Union[Event, str]


def as_state(state: StateLike) -> State:
    return state if isinstance(state, State) else State(state)


def as_event(event: EventLike) -> Event:
    return event if isinstance(event, Event) else Event(event)


def _guard_allows(guard: Guard, guards: GuardRegistry) -> bool:
    predicate = guards.get(guard.type)
    if predicate is None:
        logger.debug(f"Guard {guard.type!r} not registered, blocking transition")
        return False

    try:
        allowed = bool(predicate(guard.params))
    except Exception as e:
        logger.error(f"Guard {guard.type!r} raised, blocking transition: {e}")
        return False

    if not allowed:
        logger.debug(f"Guard {guard.type!r} rejected params {dict(guard.params)}")
    return allowed


def resolve(definition: MachineDefinition,
            guards: GuardRegistry,
            current_state: StateLike,
            event: EventLike) -> Tuple[State, List[Action]]:
    """
    Compute the next state and the actions to run for an event.

    Actions are ordered exit(current) + transition actions + entry(target).
    Every unresolvable reference (unknown state, no transition for the
    event, missing or failing guard) yields the current state and no
    actions. A target that is not declared is still entered, without
    entry actions.

    Args:
        definition: Machine definition
        guards: Guard type name -> predicate over the guard params
        current_state: State (or state name) the machine is in
        event: Event (or event type) to process

    Returns:
        Tuple of (next state, actions in execution order)
    """
    current_state = as_state(current_state)
    event = as_event(event)

    state_config = definition.states.get(current_state.value)
    if state_config is None:
        logger.debug(f"Unknown state {current_state.value!r}, ignoring {event.type!r}")
        return current_state, []

    transition = state_config.on.get(event.type)
    if transition is None:
        logger.debug(f"No transition for {event.type!r} in {current_state.value!r}")
        return current_state, []

    if transition.guard is not None and not _guard_allows(transition.guard, guards):
        return current_state, []

    next_state = State(transition.target)
    next_config = definition.states.get(transition.target)

    actions: List[Action] = []
    actions.extend(state_config.exit)
    actions.extend(transition.actions)
    if next_config is not None:
        actions.extend(next_config.entry)
    else:
        logger.debug(f"Target {transition.target!r} is not declared, no entry actions")

    logger.debug(f"{current_state.value} -> {next_state.value} via {event.type} "
                 f"({len(actions)} actions)")
    return next_state, actions


def available_events(definition: MachineDefinition, state: StateLike) -> List[str]:
    """Event types with a transition defined on ``state``"""
    state_config = definition.states.get(as_state(state).value)
    if state_config is None:
        return []
    return sorted(state_config.on)


def visualize(definition: MachineDefinition, current: Optional[StateLike] = None,
              title: str = "Machine") -> str:
    """Generate state diagram in PlantUML format"""
    current_value = as_state(current).value if current is not None else None
    lines = ["@startuml", f"title {title} State Machine", ""]

    for name in definition.states:
        if name == current_value:
            lines.append(f"state {name} #yellow : Current State")
        else:
            lines.append(f"state {name}")

    lines.append("")
    lines.append(f"[*] --> {definition.initial}")

    for name, state_config in definition.states.items():
        for event_type, transition in state_config.on.items():
            label = event_type
            if transition.guard is not None:
                label += f" [{transition.guard.type}]"
            lines.append(f"{name} --> {transition.target} : {label}")

    lines.append("@enduml")
    return "\n".join(lines)


class StateMachine:
    """
    A machine definition bound to its guard implementations.

    Both are read-only after construction, so a single instance can be
    shared between threads as long as the guard predicates are.
    """

    def __init__(self,
                 definition: MachineDefinition,
                 guards: Optional[GuardRegistry] = None):
        self.definition = definition
        self.guards: GuardRegistry = _freeze(guards)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any],
                  guards: Optional[GuardRegistry] = None) -> "StateMachine":
        from .parser import DefinitionParser
        return cls(DefinitionParser.from_dict(data), guards)

    @classmethod
    def from_json(cls, text: str,
                  guards: Optional[GuardRegistry] = None) -> "StateMachine":
        """Create a machine from its JSON definition and guard implementations"""
        from .parser import DefinitionParser
        return cls(DefinitionParser.from_json(text), guards)

    @classmethod
    def from_file(cls, path, guards: Optional[GuardRegistry] = None) -> "StateMachine":
        from .parser import DefinitionParser
        return cls(DefinitionParser.from_file(path), guards)

    @property
    def initial_state(self) -> State:
        return State(self.definition.initial)

    def transition(self, state: StateLike, event: EventLike) -> Tuple[State, List[Action]]:
        """Next state and actions for ``event`` in ``state``"""
        return resolve(self.definition, self.guards, state, event)

    def available_events(self, state: StateLike) -> List[str]:
        return available_events(self.definition, state)

    def visualize(self, current: Optional[StateLike] = None, title: str = "Machine") -> str:
        return visualize(self.definition, current, title)
