"""
Loaders for machine definitions in the XState-style JSON (or YAML) format.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from .core import Action, Guard, MachineDefinition, StateConfig, Transition, thaw_value


logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


class DefinitionLoader(yaml.SafeLoader):
    """SafeLoader that keeps on/off/yes/no as strings; only true/false are booleans"""


DefinitionLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:bool"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
DefinitionLoader.add_implicit_resolver(
    "tag:yaml.org,2002:bool",
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


class DefinitionError(ValueError):
    """Raised when serialized text does not describe a machine definition"""


def _require_mapping(value: Any, where: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise DefinitionError(f"{where}: expected an object, got {type(value).__name__}")
    return value


def _require_list(value: Any, where: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise DefinitionError(f"{where}: expected a list, got {type(value).__name__}")
    return value


def _require_key(key: Any, where: str) -> str:
    if not isinstance(key, str):
        raise DefinitionError(f"{where}: key {key!r} must be a string")
    return key


def _require_name(data: Mapping[str, Any], key: str, where: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise DefinitionError(f"{where}: '{key}' must be a string")
    return value


class DefinitionParser:
    """Parser for machine definitions"""

    @staticmethod
    def from_file(filepath: Union[str, Path]) -> MachineDefinition:
        """Load a definition from a JSON or YAML file (chosen by suffix)"""
        filepath = Path(filepath)

        with open(filepath, 'r', encoding='utf-8') as f:
            text = f.read()

        if filepath.suffix.lower() in YAML_SUFFIXES:
            return DefinitionParser.from_yaml(text)
        return DefinitionParser.from_json(text)

    @staticmethod
    def from_json(text: str) -> MachineDefinition:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise DefinitionError(f"Invalid JSON definition: {e}") from e
        return DefinitionParser.from_dict(data)

    @staticmethod
    def from_yaml(text: str) -> MachineDefinition:
        try:
            data = yaml.load(text, Loader=DefinitionLoader)
        except yaml.YAMLError as e:
            raise DefinitionError(f"Invalid YAML definition: {e}") from e
        return DefinitionParser.from_dict(data)

    @staticmethod
    def from_dict(data: Any) -> MachineDefinition:
        """Parse a machine definition from a decoded document"""
        if not isinstance(data, Mapping):
            raise DefinitionError("Definition must be an object")

        initial = _require_name(data, 'initial', 'machine')

        states = {}
        for name, state_data in _require_mapping(data.get('states'), 'states').items():
            states[_require_key(name, "states")] = DefinitionParser._parse_state(
                state_data, f"states.{name}"
            )

        if initial not in states:
            logger.warning(f"Initial state {initial!r} is not declared in states")

        logger.debug(f"Parsed definition with {len(states)} states, initial {initial!r}")
        return MachineDefinition(initial=initial, states=states)

    @staticmethod
    def _parse_state(data: Any, where: str) -> StateConfig:
        data = _require_mapping(data, where)

        on = {}
        for event_type, trans_data in _require_mapping(data.get('on'), f"{where}.on").items():
            on[_require_key(event_type, f"{where}.on")] = DefinitionParser._parse_transition(
                trans_data, f"{where}.on.{event_type}"
            )

        return StateConfig(
            on=on,
            entry=DefinitionParser._parse_actions(data.get('entry'), f"{where}.entry"),
            exit=DefinitionParser._parse_actions(data.get('exit'), f"{where}.exit"),
        )

    @staticmethod
    def _parse_transition(data: Any, where: str) -> Transition:
        data = _require_mapping(data, where)

        guard = None
        if data.get('guard') is not None:
            guard_data = _require_mapping(data['guard'], f"{where}.guard")
            guard = Guard(
                type=_require_name(guard_data, 'type', f"{where}.guard"),
                params=_require_mapping(guard_data.get('params'), f"{where}.guard.params")
            )

        return Transition(
            target=_require_name(data, 'target', where),
            guard=guard,
            actions=DefinitionParser._parse_actions(data.get('actions'), f"{where}.actions")
        )

    @staticmethod
    def _parse_actions(data: Any, where: str) -> List[Action]:
        actions = []
        for index, action_data in enumerate(_require_list(data, where)):
            item = f"{where}[{index}]"
            action_data = _require_mapping(action_data, item)
            actions.append(Action(
                type=_require_name(action_data, 'type', item),
                params=_require_mapping(action_data.get('params'), f"{item}.params")
            ))
        return actions


def _action_to_dict(action: Union[Action, Guard]) -> Dict[str, Any]:
    result: Dict[str, Any] = {'type': action.type}
    if action.params:
        result["params"] = thaw_value(action.params)
    return result


def to_dict(definition: MachineDefinition) -> Dict[str, Any]:
    """Serialize a definition back to its document shape, omitting empty fields"""
    states: Dict[str, Any] = {}

    for name, state_config in definition.states.items():
        state_data: Dict[str, Any] = {}
        on: Dict[str, Any] = {}
        for event_type, transition in state_config.on.items():
            trans_data: Dict[str, Any] = {'target': transition.target}
            if transition.guard is not None:
                trans_data['guard'] = _action_to_dict(transition.guard)
            if transition.actions:
                trans_data['actions'] = [_action_to_dict(a) for a in transition.actions]
            on[event_type] = trans_data
        if on:
            state_data['on'] = on
        if state_config.entry:
            state_data['entry'] = [_action_to_dict(a) for a in state_config.entry]
        if state_config.exit:
            state_data['exit'] = [_action_to_dict(a) for a in state_config.exit]
        states[name] = state_data

    return {'initial': definition.initial, 'states': states}


def to_json(definition: MachineDefinition, indent: Optional[int] = 2) -> str:
    return json.dumps(to_dict(definition), indent=indent)
