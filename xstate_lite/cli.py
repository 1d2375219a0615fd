#!/usr/bin/env python3
"""
Command-line interface for xstate-lite
"""

import argparse
import importlib
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .config import Settings
from .core import Action, GuardRegistry, State, StateMachine, thaw_value
from .parser import DefinitionError
from .samples import traffic_light


def load_guards(reference: Optional[str]) -> GuardRegistry:
    """Import a guard registry given as 'package.module:attribute'"""
    if not reference:
        return {}

    module_name, sep, attr = reference.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Guards must be given as module:attribute, got {reference!r}")

    module = importlib.import_module(module_name)
    try:
        guards = getattr(module, attr)
    except AttributeError as e:
        raise ImportError(f"{module_name} has no attribute {attr!r}") from e

    if not isinstance(guards, Mapping):
        raise ValueError(f"{reference} is not a mapping of guard predicates")
    return guards


def _action_to_dict(action: Action) -> Dict[str, Any]:
    return {"type": action.type, "params": thaw_value(action.params)}


def format_result(state: State, event: str, next_state: State,
                  actions: List[Action]) -> str:
    lines = [
        f"Current state: {state.value}",
        f"Event: {event}",
        f"Next state: {next_state.value}",
        "Actions to execute:",
    ]
    for action in actions:
        lines.append(f"  - Type: {action.type}, Params: {thaw_value(action.params)}")
    return "\n".join(lines)


def _resolve(machine: StateMachine, state: str, event: str, as_json: bool) -> str:
    current = State(state)
    next_state, actions = machine.transition(current, event)
    if as_json:
        return json.dumps({
            "state": next_state.value,
            "actions": [_action_to_dict(a) for a in actions],
        }, indent=2)
    return format_result(current, event, next_state, actions)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="xstate-tool",
        description="Resolve transitions of flat XState-style machine definitions"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="YAML settings file"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve_parser = subparsers.add_parser("resolve", help="Compute next state and actions")
    resolve_parser.add_argument("definition", type=Path, help="Machine definition (JSON or YAML)")
    resolve_parser.add_argument("state", help="Current state")
    resolve_parser.add_argument("event", help="Event type")
    resolve_parser.add_argument(
        "-g", "--guards",
        help="Guard registry to import, as module:attribute"
    )
    resolve_parser.add_argument("--json", action="store_true", help="Print result as JSON")

    events_parser = subparsers.add_parser("events", help="List events accepted in a state")
    events_parser.add_argument("definition", type=Path, help="Machine definition (JSON or YAML)")
    events_parser.add_argument("state", help="State to inspect")

    viz_parser = subparsers.add_parser("visualize", help="Print a PlantUML state diagram")
    viz_parser.add_argument("definition", type=Path, help="Machine definition (JSON or YAML)")
    viz_parser.add_argument("--state", help="State to highlight")
    viz_parser.add_argument("--title", default="Machine", help="Diagram title (default: %(default)s)")

    subparsers.add_parser("demo", help="Run the traffic light sample")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings.load(args.config)
    except (OSError, ValueError) as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    log_level = logging.DEBUG if args.verbose else getattr(logging, settings.log_level)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        if args.command == "demo":
            print(_resolve(traffic_light(), "green", "timer", as_json=False))
            return 0

        guards = load_guards(getattr(args, "guards", None))
        machine = StateMachine.from_file(args.definition, guards)

    except (DefinitionError, OSError, ImportError, ValueError) as e:
        print(f"Error creating state machine: {e}", file=sys.stderr)
        return 1

    if args.command == "resolve":
        print(_resolve(machine, args.state, args.event, args.json))
    elif args.command == "events":
        for event in machine.available_events(args.state):
            print(event)
    elif args.command == "visualize":
        print(machine.visualize(args.state, title=args.title))

    return 0


if __name__ == "__main__":
    sys.exit(main())
