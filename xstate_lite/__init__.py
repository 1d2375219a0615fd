"""
xstate-lite

A flat state machine resolver for XState-style JSON definitions.
"""

__version__ = "0.1.0"

from .core import (
    Action,
    Event,
    Guard,
    MachineDefinition,
    State,
    StateConfig,
    StateMachine,
    Transition,
    resolve,
)

from .parser import DefinitionError, DefinitionParser
from .interpreter import Interpreter
from .config import Settings

__all__ = [
    "Action",
    "Event",
    "Guard",
    "MachineDefinition",
    "State",
    "StateConfig",
    "StateMachine",
    "Transition",
    "resolve",
    "DefinitionError",
    "DefinitionParser",
    "Interpreter",
    "Settings",
]
