#!/usr/bin/env python3
"""
Example: Traffic Light
Cycles a traffic light through its states and prints the actions to run
"""
import os
import sys
from pathlib import Path

from xstate_lite import Interpreter, Settings, StateMachine


def is_valid(params):
    return params.get("someParam") == "accepted"


def main():
    definition = Path(__file__).with_name("traffic_light.json")
    machine = StateMachine.from_file(definition, {"isValid": is_valid})
    light = Interpreter(machine, name="traffic_light", settings=Settings.from_env())

    cycles = int(os.getenv('LIGHT_CYCLES', '1'))
    for _ in range(cycles * 3):
        previous = light.current_state
        actions = light.send("timer")
        print(f"{previous} -> {light.current_state}")
        for action in actions:
            print(f"  - Type: {action.type}, Params: {dict(action.params)}")

    print(light.visualize())


if __name__ == "__main__":
    print("Traffic Light Example Starting...")
    try:
        main()
    except KeyboardInterrupt:
        print("\nTraffic light stopped by user")
        sys.exit(130)
