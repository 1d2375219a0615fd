"""
Traffic light sample machine.
"""

from typing import Any, Dict

from .core import GuardRegistry, Params, StateMachine


def is_valid(params: Params) -> bool:
    """Accept only when someParam is the string 'accepted'"""
    return params.get("someParam") == "accepted"


TRAFFIC_LIGHT_GUARDS: GuardRegistry = {
    "isValid": is_valid,
}

TRAFFIC_LIGHT: Dict[str, Any] = {
    "initial": "green",
    "states": {
        "green": {
            "on": {
                "timer": {
                    "target": "yellow",
                    "guard": {
                        "type": "isValid",
                        "params": {"someParam": "accepted"},
                    },
                    "actions": [
                        {
                            "type": "logTransition",
                            "params": {"message": "Transitioning from green to yellow"},
                        },
                    ],
                },
            },
            "entry": [{"type": "turnOnLight", "params": {"color": "green"}}],
            "exit": [{"type": "turnOffLight", "params": {"color": "green"}}],
        },
        "yellow": {
            "on": {
                "timer": {"target": "red"},
            },
            "entry": [
                {"type": "startTimer", "params": {"duration": 5000}},
                {"type": "turnOnLight", "params": {"color": "yellow"}},
            ],
        },
        "red": {
            "on": {
                "timer": {"target": "green"},
            },
            "entry": [{"type": "turnOnLight", "params": {"color": "red"}}],
        },
    },
}


def traffic_light() -> StateMachine:
    return StateMachine.from_dict(TRAFFIC_LIGHT, TRAFFIC_LIGHT_GUARDS)
